"""
Leaf Crop Endpoints

POST /api/v1/leaf-crops        - JSON body with a data URL, http(s) URL or base64 image
POST /api/v1/leaf-crops/upload - multipart file upload

Both return the candidate leaf regions, largest first, as JPEG data URLs with
bounding boxes in source-image pixels. An image without foliage yields an
empty list, not an error.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, UploadFile, File, Form
from pydantic import BaseModel, Field, field_validator

from leafcrops.api.dependencies import get_leaf_crop_service
from leafcrops.core.config import settings
from leafcrops.core.exceptions import ValidationError
from leafcrops.core.logging import get_logger, LogContext
from leafcrops.engines.leaf_crops import LeafCrop, LeafCropResult, LeafCropService

# Constants for file size limits
MAX_IMAGE_SIZE_BYTES = settings.MAX_IMAGE_SIZE_BYTES
MAX_IMAGE_SIZE_MB = MAX_IMAGE_SIZE_BYTES / (1024 * 1024)

logger = get_logger(__name__)
router = APIRouter()


# =============================================================================
# Request/Response Schemas
# =============================================================================

class LeafCropRequest(BaseModel):
    """Request for leaf region extraction."""
    image: str = Field(..., min_length=1, description="data URL, http(s) URL or base64 encoded image")
    max_leaves: int = Field(
        default=settings.DEFAULT_MAX_LEAVES,
        le=settings.MAX_LEAVES_LIMIT,
        description="Maximum number of crops to return (values below 1 count as 1)"
    )

    @field_validator("image")
    @classmethod
    def validate_image_size(cls, v: str) -> str:
        """Reject inline payloads that obviously exceed the size limit."""
        if v[:8].lower().startswith(("http://", "https://")):
            return v

        # base64 is ~33% larger than binary
        decoded_size_bytes = len(v) * 3 / 4
        if decoded_size_bytes > MAX_IMAGE_SIZE_BYTES:
            actual_size_mb = decoded_size_bytes / (1024 * 1024)
            raise ValueError(
                f"Image size ({actual_size_mb:.2f}MB) exceeds maximum allowed size ({MAX_IMAGE_SIZE_MB:.0f}MB). "
                f"Please compress or resize your image."
            )
        return v


class LeafCropResponse(BaseModel):
    """Extracted leaf crops with diagnostics."""
    request_id: str
    count: int
    crops: List[LeafCrop]
    source_width: int
    source_height: int
    working_width: int
    working_height: int
    components_found: int
    components_kept: int
    crops_skipped: int
    processing_time_ms: int

    @classmethod
    def from_result(cls, request_id: str, result: LeafCropResult) -> "LeafCropResponse":
        return cls(
            request_id=request_id,
            count=result.count,
            **result.model_dump(include={
                "source_width",
                "source_height",
                "working_width",
                "working_height",
                "components_found",
                "components_kept",
                "crops_skipped",
                "processing_time_ms",
            }),
            crops=result.crops,
        )


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=LeafCropResponse)
async def extract_leaf_crops(
    request: LeafCropRequest,
    service: LeafCropService = Depends(get_leaf_crop_service)
):
    """
    Extract candidate leaf regions from an image reference.

    Errors:
    - 400: fetched image larger than the configured limit
    - 422: malformed request (including an inline image over the size limit)
      or undecodable image
    - 502: remote image URL unreachable or returned an error
    """
    request_id = str(uuid.uuid4())

    with LogContext(request_id=request_id, stage="segmentation"):
        logger.info(
            "leaf_crops_request_received",
            source_kind=_source_kind(request.image),
            max_leaves=request.max_leaves
        )
        result = await service.analyze(request.image, request.max_leaves)
        return LeafCropResponse.from_result(request_id, result)


@router.post("/upload", response_model=LeafCropResponse)
async def extract_leaf_crops_upload(
    file: UploadFile = File(..., description="Image file"),
    max_leaves: int = Form(settings.DEFAULT_MAX_LEAVES, le=settings.MAX_LEAVES_LIMIT),
    service: LeafCropService = Depends(get_leaf_crop_service)
):
    """
    Extract candidate leaf regions from an uploaded image file.

    Errors:
    - 400: file larger than the configured limit
    - 422: malformed form data or undecodable image
    """
    request_id = str(uuid.uuid4())

    with LogContext(request_id=request_id, stage="segmentation"):
        if file.size is not None and file.size > MAX_IMAGE_SIZE_BYTES:
            raise _upload_too_large(file.size)

        # Never buffer more than one byte past the limit
        data = await file.read(MAX_IMAGE_SIZE_BYTES + 1)
        if len(data) > MAX_IMAGE_SIZE_BYTES:
            raise _upload_too_large(len(data))

        logger.info(
            "leaf_crops_upload_received",
            filename=file.filename,
            content_type=file.content_type,
            size=len(data),
            max_leaves=max_leaves
        )
        result = await service.analyze_bytes(data, max_leaves)
        return LeafCropResponse.from_result(request_id, result)


def _upload_too_large(size: int) -> ValidationError:
    return ValidationError(
        f"Image size ({size / (1024 * 1024):.2f}MB) exceeds maximum allowed size ({MAX_IMAGE_SIZE_MB:.0f}MB)",
        stage="load",
        details={"size_bytes": size, "max_bytes": MAX_IMAGE_SIZE_BYTES}
    )


def _source_kind(source: str) -> str:
    prefix = source[:8].lower()
    if prefix.startswith("data:"):
        return "data_url"
    if prefix.startswith(("http://", "https://")):
        return "url"
    return "base64"
