"""
Image Loader

Turns an image reference into a fully decoded Pillow image. Accepted sources:
- ``data:`` URLs (base64 or percent-encoded payloads)
- ``http://`` / ``https://`` URLs, fetched with httpx
- bare base64 strings, as sent by API clients

Decoding runs in a worker thread and is awaited before any pixel access, so
the pipeline never sees a partially decoded buffer.
"""

import re
import base64
import asyncio
import binascii
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image

from leafcrops.core.config import settings
from leafcrops.core.exceptions import (
    LeafCropBaseException,
    ImageDecodeError,
    ImageFetchError,
    ValidationError,
)
from leafcrops.core.logging import get_logger, with_logging
from leafcrops.engines.leaf_crops.surface import ISurface, PillowSurface

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def decode_data_url(data_url: str) -> bytes:
    """Extract the payload bytes of a ``data:`` URL."""
    header, sep, payload = data_url.partition(",")
    if not sep or not header.lower().startswith("data:"):
        raise ImageDecodeError("Malformed data URL: missing ',' separator")

    params = header[5:].split(";")
    if "base64" in (p.strip().lower() for p in params[1:]):
        return decode_base64(payload)
    return unquote_to_bytes(payload)


def decode_base64(payload: str) -> bytes:
    """Strictly decode a base64 payload, tolerating embedded whitespace."""
    compact = _WHITESPACE.sub("", payload)
    # Clients frequently drop the trailing padding
    compact += "=" * (-len(compact) % 4)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 image payload: {e}") from e


class ImageLoader:
    """Resolves image sources to decoded images."""

    def __init__(
        self,
        surface: Optional[ISurface] = None,
        max_bytes: int = settings.MAX_IMAGE_SIZE_BYTES,
        timeout_seconds: float = settings.IMAGE_FETCH_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.surface = surface or PillowSurface()
        self.max_bytes = max_bytes
        self.timeout_seconds = timeout_seconds
        self._client = client

    @with_logging("load", expected=(LeafCropBaseException,))
    async def load(self, source: str) -> Image.Image:
        """
        Resolve ``source`` and decode it.

        Raises:
            ImageFetchError: remote image unreachable or non-2xx
            ImageDecodeError: payload malformed or not an image
            ValidationError: payload larger than the configured limit
        """
        data = await self.read_bytes(source)
        return await self.decode(data)

    async def read_bytes(self, source: str) -> bytes:
        source = source.strip()
        if not source:
            raise ImageDecodeError("Empty image source")

        lowered = source[:8].lower()
        if lowered.startswith("data:"):
            data = decode_data_url(source)
        elif lowered.startswith(("http://", "https://")):
            data = await self.fetch(source)
        else:
            data = decode_base64(source)

        self._check_size(len(data))
        return data

    async def decode(self, data: bytes) -> Image.Image:
        self._check_size(len(data))
        image = await asyncio.to_thread(self.surface.decode, data)
        logger.debug(
            "image_decoded",
            width=image.width,
            height=image.height,
            mode=image.mode,
            input_size=len(data)
        )
        return image

    async def fetch(self, url: str) -> bytes:
        if self._client is not None:
            return await self._fetch_with(self._client, url)

        async with httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True) as client:
            return await self._fetch_with(client, url)

    async def _fetch_with(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning("image_fetch_failed", url=url, error=str(e))
            raise ImageFetchError(f"Could not fetch image: {e}", url=url) from e

        if response.status_code >= 400:
            logger.warning("image_fetch_failed", url=url, http_status=response.status_code)
            raise ImageFetchError(
                f"Image URL returned HTTP {response.status_code}",
                url=url,
                http_status=response.status_code
            )

        logger.debug("image_fetched", url=url, size=len(response.content))
        return response.content

    def _check_size(self, size: int):
        if size > self.max_bytes:
            max_mb = self.max_bytes / (1024 * 1024)
            actual_mb = size / (1024 * 1024)
            raise ValidationError(
                f"Image size ({actual_mb:.2f}MB) exceeds maximum allowed size ({max_mb:.0f}MB)",
                stage="load",
                details={"size_bytes": size, "max_bytes": self.max_bytes}
            )
