"""
Leaf Region Segmentation Engine

Finds green, leaf-like regions in a photograph and returns them as
thumbnail crops with source-image bounding boxes.
"""

from leafcrops.engines.leaf_crops.config import SegmentationConfig, DEFAULT_CONFIG
from leafcrops.engines.leaf_crops.schemas import BoundingBox, LeafCrop, LeafCropResult
from leafcrops.engines.leaf_crops.services import LeafCropService, compute_leaf_crops

__all__ = [
    "SegmentationConfig",
    "DEFAULT_CONFIG",
    "BoundingBox",
    "LeafCrop",
    "LeafCropResult",
    "LeafCropService",
    "compute_leaf_crops",
]
