"""
Monitoring Module

Prometheus metrics for requests and the cache tiers.
"""

from gallery_cache.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)

__all__ = ["MetricsCollector", "get_metrics_collector"]
