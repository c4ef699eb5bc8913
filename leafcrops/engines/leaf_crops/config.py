"""
Segmentation tuning parameters.

Every threshold here is a hand-tuned heuristic for "looks like foliage in a
phone photo", not a property of leaves. Override through ``SEGMENTATION_*``
settings rather than editing the defaults.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SegmentationConfig:
    """Configuration for leaf region segmentation and crop rendering."""

    # Working raster width cap (labeling cost grows with pixel count)
    working_max_width: int = 320

    # Pixel classifier
    green_min: int = 50  # darker green channel is not foliage
    green_over_red: int = 20  # green must exceed red by more than this
    green_over_blue: int = 15  # green must exceed blue by more than this
    min_channel_sum: int = 120  # near-black shadow noise

    # Noise floor: max(min_component_area, round(fraction * working pixels))
    min_component_area: int = 200
    min_component_area_fraction: float = 0.01

    # Crop rendering
    expand_factor: float = 1.2
    thumbnail_max_width: int = 320
    jpeg_quality: float = 0.85  # 0-1, canvas style

    @classmethod
    def from_settings(cls, settings) -> "SegmentationConfig":
        return cls(
            working_max_width=settings.SEGMENTATION_WORKING_MAX_WIDTH,
            green_min=settings.SEGMENTATION_GREEN_MIN,
            green_over_red=settings.SEGMENTATION_GREEN_OVER_RED,
            green_over_blue=settings.SEGMENTATION_GREEN_OVER_BLUE,
            min_channel_sum=settings.SEGMENTATION_MIN_CHANNEL_SUM,
            min_component_area=settings.SEGMENTATION_MIN_COMPONENT_AREA,
            min_component_area_fraction=settings.SEGMENTATION_MIN_COMPONENT_AREA_FRACTION,
            expand_factor=settings.SEGMENTATION_EXPAND_FACTOR,
            thumbnail_max_width=settings.SEGMENTATION_THUMBNAIL_MAX_WIDTH,
            jpeg_quality=settings.SEGMENTATION_JPEG_QUALITY,
        )


# Default config matching the shipped heuristics
DEFAULT_CONFIG = SegmentationConfig()
