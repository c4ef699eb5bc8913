"""
Metrics Endpoint

GET /api/v1/metrics - Prometheus metrics endpoint
"""

from fastapi import APIRouter, Response

from leafcrops.core.metrics import get_metrics, get_metrics_content_type

router = APIRouter()


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Exposes:
    - leafcrops_stage_latency_seconds (per stage)
    - leafcrops_requests_total
    - leafcrops_crops_returned / leafcrops_components_found
    - leafcrops_crop_render_failures_total
    - leafcrops_image_load_failures_total
    - http_requests_total
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
