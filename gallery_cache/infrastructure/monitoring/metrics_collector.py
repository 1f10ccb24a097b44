#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides production-ready metrics collection with:
- Prometheus-compatible metrics
- Request latency histograms
- Cache hit/miss/set/delete/error counters by tier
- Cache population gauge

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Efficient storage and aggregation
- Histogram buckets for latency percentiles

Author: Senior Solution Architect
Date: 2025-12-05
"""


from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from gallery_cache.core.config.settings import Settings, get_settings
from gallery_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Request metrics
REQUEST_COUNT = Counter(
    'gallery_requests_total',
    'Total number of API requests',
    ['method', 'status']
)

REQUEST_DURATION = Histogram(
    'gallery_request_duration_seconds',
    'Request duration in seconds',
    ['method'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)

# Cache metrics
CACHE_HITS = Counter(
    'gallery_cache_hits_total',
    'Total cache hits',
    ['tier']  # memory or distributed
)

CACHE_MISSES = Counter(
    'gallery_cache_misses_total',
    'Total cache misses'
)

CACHE_SETS = Counter(
    'gallery_cache_sets_total',
    'Total cache writes'
)

CACHE_DELETES = Counter(
    'gallery_cache_deletes_total',
    'Total cache deletions'
)

CACHE_ERRORS = Counter(
    'gallery_cache_errors_total',
    'Total swallowed cache errors',
    ['operation']
)

CACHE_ENTRIES = Gauge(
    'gallery_cache_entries',
    'Entries currently held in the memory tier'
)

# App info
APP_INFO = Info(
    'gallery_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = get_metrics_collector()

        metrics.record_cache_hit("memory")
        metrics.record_request("GET", 200)

        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.set_app_info(get_settings())

        logger.info("Metrics collector initialized", stage="M.0")

    def set_app_info(self, settings: Settings) -> None:
        """Publish application name, version and environment."""
        APP_INFO.info({
            'version': settings.app.APP_VERSION,
            'environment': settings.app.ENVIRONMENT,
            'app_name': settings.app.APP_NAME
        })

    # =========================================================================
    # Request Metrics
    # =========================================================================

    def record_request(self, method: str, status: int) -> None:
        """Record a request."""
        REQUEST_COUNT.labels(method=method, status=str(status)).inc()

    def record_request_duration(self, method: str, duration_seconds: float) -> None:
        """Record request duration."""
        REQUEST_DURATION.labels(method=method).observe(duration_seconds)

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_cache_hit(self, tier: str) -> None:
        """Record cache hit."""
        CACHE_HITS.labels(tier=tier).inc()

    def record_cache_miss(self) -> None:
        """Record cache miss."""
        CACHE_MISSES.inc()

    def record_cache_set(self) -> None:
        CACHE_SETS.inc()

    def record_cache_delete(self) -> None:
        CACHE_DELETES.inc()

    def record_cache_error(self, operation: str) -> None:
        """Record an error swallowed by the cache layer."""
        CACHE_ERRORS.labels(operation=operation).inc()

    def set_cache_entries(self, count: int) -> None:
        CACHE_ENTRIES.set(count)

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector (Prometheus metrics are process-wide by nature)
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
