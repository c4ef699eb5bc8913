"""
API v1 Router Module - Leaf Crop Service

All v1 endpoints are prefixed with /api/v1/

Primary endpoint: POST /api/v1/leaf-crops
- JSON body (data URL, http(s) URL or base64)
- Multipart upload variant at /api/v1/leaf-crops/upload
"""

from fastapi import APIRouter

from leafcrops.api.v1.leaf_crops import router as leaf_crops_router
from leafcrops.api.v1.metrics import router as metrics_router

# Main v1 router
api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(leaf_crops_router, prefix="/leaf-crops", tags=["leaf-crops"])
api_v1_router.include_router(metrics_router, tags=["metrics"])
