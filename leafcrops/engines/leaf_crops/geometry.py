"""
Box geometry between the working raster and the source image.

All rounding is half-up so coordinates stay stable at .5 boundaries
regardless of sign parity (Python's round() is banker's rounding).
"""

import math
from typing import Optional, Tuple

from leafcrops.engines.leaf_crops.schemas import BoundingBox


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def working_size(src_w: int, src_h: int, max_width: int = 320) -> Optional[Tuple[int, int]]:
    """Working raster size for segmentation, capped at ``max_width``.

    Returns None when the source has no measurable dimensions.
    """
    if not src_w or not src_h or src_w < 0 or src_h < 0:
        return None

    target_w = min(max_width, src_w)
    scale = target_w / src_w
    target_h = max(1, round_half_up(src_h * scale))
    return target_w, target_h


def to_source_box(box: BoundingBox, scale: float) -> BoundingBox:
    """Map a working-raster box to source pixels (``scale`` = working / source)."""
    return BoundingBox(
        x=round_half_up(box.x / scale),
        y=round_half_up(box.y / scale),
        w=max(1, round_half_up(box.w / scale)),
        h=max(1, round_half_up(box.h / scale)),
    )


def expand_box(box: BoundingBox, factor: float, max_w: int, max_h: int) -> BoundingBox:
    """Grow ``box`` by ``factor`` around its centre and clamp it to the image.

    The result always satisfies 0 <= x, 0 <= y, x + w <= max_w, y + h <= max_h
    with w, h >= 1.
    """
    cx = box.x + box.w / 2
    cy = box.y + box.h / 2
    w = box.w * factor
    h = box.h * factor

    x1 = clamp(round_half_up(cx - w / 2), 0, max_w - 1)
    y1 = clamp(round_half_up(cy - h / 2), 0, max_h - 1)
    x2 = clamp(round_half_up(cx + w / 2), 0, max_w)
    y2 = clamp(round_half_up(cy + h / 2), 0, max_h)

    return BoundingBox(x=x1, y=y1, w=max(1, x2 - x1), h=max(1, y2 - y1))


def thumbnail_size(box: BoundingBox, max_width: int = 320) -> Tuple[int, int]:
    """Output size for a crop: width capped at ``max_width``, never upscaled."""
    scale = min(1.0, max_width / box.w)
    out_w = max(1, round_half_up(box.w * scale))
    out_h = max(1, round_half_up(box.h * scale))
    return out_w, out_h
