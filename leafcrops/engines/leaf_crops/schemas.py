from pydantic import BaseModel, ConfigDict, Field
from typing import List


class BoundingBox(BaseModel):
    """Integer rectangle in working-raster or source-image pixels."""
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    w: int = Field(..., ge=1)
    h: int = Field(..., ge=1)

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h


class LeafCrop(BaseModel):
    """One candidate leaf region, ready to hand to a vision model."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data_url: str = Field(..., alias="dataUrl", description="JPEG thumbnail as a data URL")
    bbox: BoundingBox = Field(..., description="Expanded crop box in source-image pixels")


class LeafCropResult(BaseModel):
    """Crops plus diagnostics for one extraction."""
    crops: List[LeafCrop] = Field(default_factory=list)

    source_width: int = 0
    source_height: int = 0
    working_width: int = 0
    working_height: int = 0

    components_found: int = Field(0, description="Connected components labeled before the noise floor")
    components_kept: int = Field(0, description="Components above the noise floor")
    crops_skipped: int = Field(0, description="Selected components that could not be rendered")
    processing_time_ms: int = 0

    @property
    def count(self) -> int:
        return len(self.crops)
