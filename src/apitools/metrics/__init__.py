"""Prometheus collectors and host resource sampling."""

from .prometheus import DURATION_BUCKETS, PrometheusMetrics, metrics_handler
from .system import DEFAULT_CPU_INTERVAL, SystemMetrics, disk_usage, sample_system_metrics

__all__ = [
    "DURATION_BUCKETS",
    "PrometheusMetrics",
    "metrics_handler",
    "DEFAULT_CPU_INTERVAL",
    "SystemMetrics",
    "disk_usage",
    "sample_system_metrics",
]
