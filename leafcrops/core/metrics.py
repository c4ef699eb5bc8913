"""
Prometheus Metrics for Observability

Tracks segmentation stage latency, crop yield and HTTP traffic.
Exposes /metrics endpoint for Prometheus scraping.
"""

import time
from contextlib import contextmanager

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY
)

# =============================================================================
# Metrics Definitions
# =============================================================================

# Segmentation Latency - Per Stage
segmentation_latency_seconds = Histogram(
    "leafcrops_stage_latency_seconds",
    "Time spent in each segmentation stage",
    labelnames=["stage", "status"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Requests by outcome (crops, empty, error)
leaf_crop_requests_total = Counter(
    "leafcrops_requests_total",
    "Total number of leaf crop extractions",
    labelnames=["outcome"]
)

crops_returned = Histogram(
    "leafcrops_crops_returned",
    "Number of crops returned per extraction",
    buckets=[0, 1, 2, 3, 5, 10]
)

components_found = Histogram(
    "leafcrops_components_found",
    "Number of connected components labeled per extraction",
    buckets=[0, 1, 5, 10, 50, 100, 500, 1000, 5000]
)

crop_render_failures_total = Counter(
    "leafcrops_crop_render_failures_total",
    "Crops skipped because the region could not be rendered"
)

image_load_failures_total = Counter(
    "leafcrops_image_load_failures_total",
    "Images that could not be fetched or decoded",
    labelnames=["reason"]
)

# API Request Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    labelnames=["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Application Info
app_info = Info(
    "leafcrops_app",
    "Application information"
)


# =============================================================================
# Helper Functions
# =============================================================================

def set_app_info(version: str, environment: str):
    """Set application info metric."""
    app_info.info({
        "version": version,
        "environment": environment
    })


@contextmanager
def track_stage_latency(stage: str):
    """
    Context manager to track stage latency.

    Usage:
        with track_stage_latency("labeling"):
            # do work
    """
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start
        segmentation_latency_seconds.labels(stage=stage, status=status).observe(duration)


def record_extraction(crop_count: int, component_count: int):
    """Record the outcome of one completed extraction."""
    outcome = "crops" if crop_count else "empty"
    leaf_crop_requests_total.labels(outcome=outcome).inc()
    crops_returned.observe(crop_count)
    components_found.observe(component_count)


def record_crop_render_failure():
    """Record a crop that was skipped during rendering."""
    crop_render_failures_total.inc()


def record_image_load_failure(reason: str):
    """Record a fatal image load failure.

    Args:
        reason: Short failure class (fetch, decode, too_large)
    """
    leaf_crop_requests_total.labels(outcome="error").inc()
    image_load_failures_total.labels(reason=reason).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
