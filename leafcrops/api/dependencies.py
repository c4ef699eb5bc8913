"""
FastAPI Dependencies for the Leaf Crop Service

The service holds only configuration and stateless collaborators, so a
single process-wide instance is shared by every request.
"""

from leafcrops.core.config import settings
from leafcrops.engines.leaf_crops import LeafCropService, SegmentationConfig
from leafcrops.engines.leaf_crops.loader import ImageLoader
from leafcrops.engines.leaf_crops.surface import PillowSurface


# =============================================================================
# Global Singletons
# =============================================================================

_surface = PillowSurface()
_leaf_crop_service = LeafCropService(
    config=SegmentationConfig.from_settings(settings),
    surface=_surface,
    loader=ImageLoader(
        surface=_surface,
        max_bytes=settings.MAX_IMAGE_SIZE_BYTES,
        timeout_seconds=settings.IMAGE_FETCH_TIMEOUT_SECONDS,
    ),
)


def get_leaf_crop_service() -> LeafCropService:
    """Dependency provider for the shared LeafCropService."""
    return _leaf_crop_service
