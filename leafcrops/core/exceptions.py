"""
Global Exception Handling

Provides structured error responses for the leaf crop service.

Only input problems surface to callers: an image that cannot be fetched or
decoded, or a request that fails validation. Everything inside the
segmentation pipeline degrades to an empty or partial result instead.
"""

import traceback
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from leafcrops.core.logging import get_logger, request_id_var

logger = get_logger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# Custom Exceptions
# =============================================================================

class LeafCropBaseException(Exception):
    """Base exception for the leaf crop service."""

    def __init__(
        self,
        message: str,
        code: int = 500,
        request_id: Optional[str] = None,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.request_id = request_id or request_id_var.get()
        self.stage = stage
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(LeafCropBaseException):
    """Raised when input validation fails."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=400, **kwargs)


class ImageLoadError(LeafCropBaseException):
    """Raised when the source image cannot be turned into pixels."""

    def __init__(self, message: str, code: int = 422, **kwargs):
        kwargs.setdefault("stage", "load")
        super().__init__(message, code=code, **kwargs)


class ImageDecodeError(ImageLoadError):
    """Raised when image bytes are malformed or in an unsupported format."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=422, **kwargs)


class ImageFetchError(ImageLoadError):
    """Raised when a remote image is unreachable or answers with an error."""

    def __init__(self, message: str, url: str, http_status: Optional[int] = None, **kwargs):
        super().__init__(message, code=502, **kwargs)
        self.details["url"] = url
        self.details["http_status"] = http_status


# =============================================================================
# FastAPI Handlers
# =============================================================================

def register_exception_handlers(app: FastAPI):
    """Register custom exception handlers with FastAPI app."""

    @app.exception_handler(LeafCropBaseException)
    async def leaf_crop_exception_handler(request: Request, exc: LeafCropBaseException):
        request_id = exc.request_id or request_id_var.get()

        logger.warning(
            "leaf_crop_exception",
            error=exc.message,
            error_type=type(exc).__name__,
            code=exc.code,
            stage=exc.stage,
            details=exc.details
        )

        return JSONResponse(
            status_code=exc.code,
            content={
                "error": exc.message,
                "request_id": request_id,
                "code": exc.code,
                "stage": exc.stage,
                "details": exc.details,
                "timestamp": _utc_timestamp()
            }
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        request_id = request_id_var.get()

        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
            traceback=traceback.format_exc()
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "request_id": request_id,
                "code": 500,
                "timestamp": _utc_timestamp()
            }
        )
