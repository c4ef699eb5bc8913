"""
Leaf Crop Service

Isolates candidate leaf regions in a photograph so they can be sent to a
vision model one by one:

1. Load    - resolve and fully decode the source image
2. Sample  - resample into a working raster at most 320px wide
3. Classify - green-ness heuristic per pixel -> binary mask
4. Label   - 4-connected flood fill -> components with areas and boxes
5. Select  - drop noise, rank by area, keep the top ``max_leaves``
6. Crop    - map boxes back to source pixels, expand, render thumbnails

Only the load step can fail the call. Anything after it degrades to an
empty or partial result: no foliage found, no raster available, or one crop
that could not be rendered are all normal outcomes.
"""

import time
import asyncio
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from leafcrops.core.exceptions import (
    ImageDecodeError,
    ImageFetchError,
    ImageLoadError,
    ValidationError,
)
from leafcrops.core.logging import get_logger
from leafcrops.core.metrics import (
    track_stage_latency,
    record_extraction,
    record_crop_render_failure,
    record_image_load_failure,
)
from leafcrops.engines.leaf_crops.classifier import build_mask
from leafcrops.engines.leaf_crops.config import SegmentationConfig, DEFAULT_CONFIG
from leafcrops.engines.leaf_crops.geometry import (
    working_size,
    to_source_box,
    expand_box,
    thumbnail_size,
)
from leafcrops.engines.leaf_crops.labeling import Component, label_components
from leafcrops.engines.leaf_crops.loader import ImageLoader
from leafcrops.engines.leaf_crops.schemas import LeafCrop, LeafCropResult
from leafcrops.engines.leaf_crops.selection import filter_components, rank_components
from leafcrops.engines.leaf_crops.surface import (
    ISurface,
    PillowSurface,
    SurfaceError,
    CropRenderError,
)

logger = get_logger(__name__)


class LeafCropService:
    """Runs the leaf segmentation pipeline.

    Holds configuration and collaborators only; every call allocates its own
    working buffers, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        surface: Optional[ISurface] = None,
        loader: Optional[ImageLoader] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.surface = surface or PillowSurface()
        self.loader = loader or ImageLoader(surface=self.surface)

    async def analyze(self, source: str, max_leaves: int) -> LeafCropResult:
        """Load ``source`` (data URL, http(s) URL or base64) and extract crops."""
        try:
            image = await self.loader.load(source)
        except (ImageLoadError, ValidationError) as e:
            record_image_load_failure(_load_failure_reason(e))
            raise
        return await asyncio.to_thread(self.extract, image, max_leaves)

    async def analyze_bytes(self, data: bytes, max_leaves: int) -> LeafCropResult:
        """Decode raw image bytes and extract crops."""
        try:
            image = await self.loader.decode(data)
        except (ImageLoadError, ValidationError) as e:
            record_image_load_failure(_load_failure_reason(e))
            raise
        return await asyncio.to_thread(self.extract, image, max_leaves)

    def extract(self, image: Image.Image, max_leaves: int) -> LeafCropResult:
        """Run steps 2-6 on an already decoded image. Never raises for image content."""
        start = time.perf_counter()
        config = self.config

        src_w, src_h = image.size
        size = working_size(src_w, src_h, config.working_max_width)
        if size is None:
            logger.info("leaf_crops_empty", reason="no_dimensions", width=src_w, height=src_h)
            return self._finish(LeafCropResult(source_width=src_w or 0, source_height=src_h or 0), start)

        target_w, target_h = size
        scale = target_w / src_w
        result = LeafCropResult(
            source_width=src_w,
            source_height=src_h,
            working_width=target_w,
            working_height=target_h,
        )

        try:
            with track_stage_latency("sample"):
                pixels = self.surface.sample(image, target_w, target_h)
        except SurfaceError as e:
            logger.warning("leaf_crops_empty", reason="surface_unavailable", error=str(e))
            return self._finish(result, start)

        with track_stage_latency("classify"):
            mask = build_mask(pixels, config)

        with track_stage_latency("label"):
            components = label_components(mask)

        kept = filter_components(components, target_w, target_h, config)
        picked = rank_components(kept, max_leaves)

        result.components_found = len(components)
        result.components_kept = len(kept)

        if not picked:
            logger.info(
                "leaf_crops_empty",
                reason="no_components",
                components_found=len(components),
                foreground_pixels=int(mask.sum())
            )
            return self._finish(result, start)

        with track_stage_latency("crop"):
            crops, skipped = self._render_crops(image, picked, scale)

        result.crops = crops
        result.crops_skipped = skipped
        return self._finish(result, start)

    def _render_crops(
        self,
        image: Image.Image,
        components: Sequence[Component],
        scale: float,
    ) -> Tuple[List[LeafCrop], int]:
        crops: List[LeafCrop] = []
        skipped = 0

        for rank, component in enumerate(components):
            try:
                crops.append(self._render_crop(image, component, scale))
            except CropRenderError as e:
                skipped += 1
                record_crop_render_failure()
                logger.warning(
                    "crop_render_skipped",
                    rank=rank,
                    area=component.area,
                    error=str(e)
                )

        return crops, skipped

    def _render_crop(self, image: Image.Image, component: Component, scale: float) -> LeafCrop:
        src_w, src_h = image.size
        config = self.config

        source_box = to_source_box(component.bbox, scale)
        box = expand_box(source_box, config.expand_factor, src_w, src_h)
        out_w, out_h = thumbnail_size(box, config.thumbnail_max_width)

        raster = self.surface.render_crop(image, box, out_w, out_h)
        data_url = self.surface.encode_data_url(raster, config.jpeg_quality)
        return LeafCrop(data_url=data_url, bbox=box)

    def _finish(self, result: LeafCropResult, start: float) -> LeafCropResult:
        result.processing_time_ms = int((time.perf_counter() - start) * 1000)
        record_extraction(result.count, result.components_found)
        logger.info(
            "leaf_crops_extracted",
            crop_count=result.count,
            components_found=result.components_found,
            components_kept=result.components_kept,
            crops_skipped=result.crops_skipped,
            source_size=(result.source_width, result.source_height),
            working_size=(result.working_width, result.working_height),
            duration_ms=result.processing_time_ms
        )
        return result


def _load_failure_reason(error: Exception) -> str:
    if isinstance(error, ImageFetchError):
        return "fetch"
    if isinstance(error, ImageDecodeError):
        return "decode"
    if isinstance(error, ValidationError):
        return "too_large"
    return "other"


async def compute_leaf_crops(
    source: str,
    max_leaves: int,
    service: Optional[LeafCropService] = None,
) -> List[LeafCrop]:
    """
    Extract leaf crops from an image reference.

    Args:
        source: data URL, http(s) URL or base64 payload
        max_leaves: maximum number of crops; values below 1 are treated as 1

    Returns:
        Crops ordered by descending region area, possibly empty

    Raises:
        ImageLoadError: the image could not be fetched or decoded
    """
    service = service or LeafCropService()
    result = await service.analyze(source, max_leaves)
    return result.crops
