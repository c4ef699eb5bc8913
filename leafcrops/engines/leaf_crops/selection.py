"""
Blob selection: drop noise, rank by area, keep the top K.
"""

from typing import List, Sequence

from leafcrops.engines.leaf_crops.config import SegmentationConfig, DEFAULT_CONFIG
from leafcrops.engines.leaf_crops.geometry import round_half_up
from leafcrops.engines.leaf_crops.labeling import Component


def min_component_area(width: int, height: int, config: SegmentationConfig = DEFAULT_CONFIG) -> int:
    """Resolution-relative noise floor for component area."""
    relative = round_half_up(width * height * config.min_component_area_fraction)
    return max(config.min_component_area, relative)


def filter_components(
    components: Sequence[Component],
    width: int,
    height: int,
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> List[Component]:
    floor = min_component_area(width, height, config)
    return [c for c in components if c.area >= floor]


def select_components(
    components: Sequence[Component],
    width: int,
    height: int,
    max_leaves: int,
    config: SegmentationConfig = DEFAULT_CONFIG,
) -> List[Component]:
    """Pick the largest components above the noise floor.

    sorted() is stable, so equal areas keep their row-major discovery order.
    Values of ``max_leaves`` below 1 are treated as 1.
    """
    return rank_components(filter_components(components, width, height, config), max_leaves)


def rank_components(kept: Sequence[Component], max_leaves: int) -> List[Component]:
    """Top ``max_leaves`` of already filtered components, largest first."""
    ranked = sorted(kept, key=lambda c: c.area, reverse=True)
    return ranked[:max(1, max_leaves)]
