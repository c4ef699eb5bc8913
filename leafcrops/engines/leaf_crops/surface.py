"""
Drawing Surface Abstraction - The Bridge Pattern

The segmentation algorithm only needs four raster capabilities: decode bytes
into an image, resample the whole image into a pixel buffer, render a
sub-region at a new size, and encode a raster as a data URL. ``ISurface``
names them; ``PillowSurface`` implements them on top of Pillow.
"""

import io
import base64
import struct
from abc import ABC, abstractmethod

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from leafcrops.core.exceptions import ImageDecodeError
from leafcrops.engines.leaf_crops.schemas import BoundingBox


class SurfaceError(Exception):
    """Raised when no raster can be produced for an image."""


class CropRenderError(SurfaceError):
    """Raised when a single crop cannot be rendered or encoded."""


class ISurface(ABC):
    """Interface for raster operations - The Bridge"""

    @abstractmethod
    def decode(self, data: bytes) -> Image.Image:
        """
        Fully decode image bytes.

        Raises:
            ImageDecodeError: bytes are malformed or in an unsupported format
        """
        pass

    @abstractmethod
    def sample(self, image: Image.Image, width: int, height: int) -> np.ndarray:
        """
        Resample the whole image to ``width`` x ``height``.

        Returns:
            (height, width, 3) uint8 RGB buffer

        Raises:
            SurfaceError: no raster could be produced
        """
        pass

    @abstractmethod
    def render_crop(self, image: Image.Image, box: BoundingBox, out_w: int, out_h: int) -> Image.Image:
        """
        Draw the ``box`` region of ``image`` into an ``out_w`` x ``out_h`` raster.

        Raises:
            CropRenderError: the region could not be rendered
        """
        pass

    @abstractmethod
    def encode_data_url(self, image: Image.Image, quality: float) -> str:
        """
        Encode a raster as a JPEG data URL, ``quality`` in 0-1.

        Raises:
            CropRenderError: the raster could not be encoded
        """
        pass


class PillowSurface(ISurface):
    """Pillow implementation of the drawing surface."""

    def __init__(self, resample: Image.Resampling = Image.Resampling.BILINEAR):
        self.resample = resample

    def decode(self, data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            # Honour camera orientation the way browsers do when decoding
            return ImageOps.exif_transpose(image)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
            SyntaxError,  # corrupt PNG chunk header
            # truncated headers
            EOFError,
            struct.error,
        ) as e:
            raise ImageDecodeError(
                f"Could not decode image: {e}",
                details={"input_size": len(data)}
            ) from e

    def sample(self, image: Image.Image, width: int, height: int) -> np.ndarray:
        try:
            rgb = self._to_rgb(image)
            if rgb.size != (width, height):
                rgb = rgb.resize((width, height), resample=self.resample)
            return np.asarray(rgb, dtype=np.uint8)
        except (OSError, ValueError, MemoryError) as e:
            raise SurfaceError(f"Could not sample image at {width}x{height}: {e}") from e

    def render_crop(self, image: Image.Image, box: BoundingBox, out_w: int, out_h: int) -> Image.Image:
        try:
            rgb = self._to_rgb(image)
            return rgb.resize(
                (out_w, out_h),
                resample=self.resample,
                box=(box.x, box.y, box.right, box.bottom),
            )
        except (OSError, ValueError, MemoryError) as e:
            raise CropRenderError(f"Could not render crop {box.model_dump()}: {e}") from e

    def encode_data_url(self, image: Image.Image, quality: float) -> str:
        buffer = io.BytesIO()
        try:
            image.convert("RGB").save(buffer, format="JPEG", quality=int(round(quality * 100)))
        except (OSError, ValueError) as e:
            raise CropRenderError(f"Could not encode crop: {e}") from e

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"

    @staticmethod
    def _to_rgb(image: Image.Image) -> Image.Image:
        """Flatten to RGB; transparent areas land on black like an empty canvas."""
        if image.mode == "RGB":
            return image

        has_alpha = image.mode in ("RGBA", "LA", "PA") or (
            image.mode == "P" and "transparency" in image.info
        )
        if not has_alpha:
            return image.convert("RGB")

        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
