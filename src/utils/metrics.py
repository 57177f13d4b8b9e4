"""
Prometheus metrics for Box upload monitoring.

Provides instrumentation for upload operations with standardized
Prometheus metrics. Tracks success/failure rates, latencies and API errors.

Metrics Provided:
    - box_upload_requests_total: Counter for upload operations
    - box_upload_bytes_total: Counter for uploaded bytes
    - box_upload_duration_seconds: Histogram for upload latency
    - box_api_errors_total: Counter for Box API errors
    - box_preflight_conflicts_total: Counter for pre-flight name conflicts

Usage:
    from src.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload(operation="new_file"):
        response = requests.post(...)
    metrics.record_upload_success(bytes_uploaded=1024, operation="new_file")

    # Start metrics server:
    python -m src.utils.metrics --port 9090
"""

import os
from contextlib import nullcontext
from typing import Any, Optional

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
)

from src.utils.logging import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

class PrometheusMetrics:
    """
    Centralized Prometheus metrics for the uploader.

    Example:
        >>> from prometheus_client import CollectorRegistry
        >>> metrics = PrometheusMetrics(registry=CollectorRegistry())
        >>> metrics.record_upload_success(bytes_uploaded=2048, operation="new_file")
    """

    def __init__(self, enabled: bool = True, registry: Optional[Any] = None) -> None:
        """
        Initialize metrics collectors.

        Args:
            enabled: Whether metrics collection is enabled
            registry: Custom Prometheus registry (uses default if None)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        # Counter: Total upload requests by status and operation
        self.upload_requests = Counter(
            name="box_upload_requests_total",
            documentation="Total number of Box upload requests",
            labelnames=["status", "operation"],  # operation: new_file/new_version
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="box_upload_bytes_total",
            documentation="Total bytes uploaded to Box",
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="box_upload_duration_seconds",
            documentation="Time spent in Box upload requests",
            labelnames=["operation"],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
            registry=self.registry,
        )

        # Counter: Box API errors by HTTP status or transport failure
        self.api_errors = Counter(
            name="box_api_errors_total",
            documentation="Total Box API errors",
            labelnames=["operation", "error_type"],
            registry=self.registry,
        )

        self.preflight_conflicts = Counter(
            name="box_preflight_conflicts_total",
            documentation="Pre-flight checks answered with a name conflict",
            registry=self.registry,
        )

        self.app_info = Info(
            name="box_uploader",
            documentation="Uploader metadata",
            registry=self.registry,
        )
        self.app_info.info({"version": "0.1.0", "name": "box-csv-uploader"})

        logger.debug("PrometheusMetrics initialized")

    def track_upload(self, operation: str = "new_file"):
        """
        Context manager timing a single upload request.

        Example:
            >>> with metrics.track_upload(operation="new_version"):
            ...     response = requests.post(url, files=parts)
        """
        if not self.enabled:
            return nullcontext()

        return self.upload_duration.labels(operation=operation).time()

    def record_upload_success(self, bytes_uploaded: int, operation: str = "new_file") -> None:
        if not self.enabled:
            return

        self.upload_requests.labels(status="success", operation=operation).inc()
        self.upload_bytes.inc(bytes_uploaded)

    def record_upload_failure(self, operation: str = "new_file") -> None:
        if not self.enabled:
            return

        self.upload_requests.labels(status="failure", operation=operation).inc()

    def record_api_error(self, operation: str, error_type: str) -> None:
        """
        Record Box API error.

        Args:
            operation: API operation (preflight, upload, upload_version, users_me)
            error_type: HTTP status code as string, or exception class name
        """
        if not self.enabled:
            return

        self.api_errors.labels(operation=operation, error_type=error_type).inc()

    def record_preflight_conflict(self) -> None:
        if not self.enabled:
            return

        self.preflight_conflicts.inc()


# ============================================================================
# Global Metrics Instance
# ============================================================================

_metrics_instance: Optional[PrometheusMetrics] = None


def get_metrics() -> PrometheusMetrics:
    """
    Get global metrics instance (singleton).

    Collection is disabled when METRICS_ENABLED is set to anything but "true".
    """
    global _metrics_instance

    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = PrometheusMetrics(enabled=enabled)

    return _metrics_instance


# ============================================================================
# Metrics Server
# ============================================================================

def start_metrics_server(port: int = 9090, addr: str = "0.0.0.0") -> None:
    """
    Start Prometheus metrics HTTP server.

    Note:
        Blocks forever - run in separate thread or process
    """
    logger.info(f"Starting Prometheus metrics server on {addr}:{port}")

    start_http_server(port=port, addr=addr)
    logger.info(f"Metrics server running at http://{addr}:{port}/metrics")

    import signal

    try:
        signal.pause()
    except KeyboardInterrupt:
        logger.info("Metrics server shutting down")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Box CSV uploader metrics server")
    parser.add_argument(
        "--port",
        type=int,
        default=9090,
        help="Metrics server port (default: 9090)",
    )
    parser.add_argument(
        "--addr",
        type=str,
        default="0.0.0.0",
        help="Address to bind to (default: 0.0.0.0)",
    )

    args = parser.parse_args()
    start_metrics_server(port=args.port, addr=args.addr)
