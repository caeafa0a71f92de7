"""Metrics layer: aggregate usage queries against Prometheus."""

from kdash_monitor.metrics.models import QueryResult, Sample
from kdash_monitor.metrics.probe import MetricsProbe, extract_first_value
from kdash_monitor.metrics.queries import (
    ClusterScope,
    InvalidScopeError,
    NodeScope,
    PodScope,
    Resource,
    build_query,
)

__all__ = [
    "ClusterScope",
    "InvalidScopeError",
    "MetricsProbe",
    "NodeScope",
    "PodScope",
    "QueryResult",
    "Resource",
    "Sample",
    "build_query",
    "extract_first_value",
]
