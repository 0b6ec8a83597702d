"""
=============================================================================
PROMETHEUS METRICS SINK
=============================================================================

The collectors MetricsMiddleware writes to, and the handler that exposes
them.

    ┌────────────────────────────────────┬───────────┬─────────────────────┐
    │ Metric                             │ Type      │ Labels              │
    ├────────────────────────────────────┼───────────┼─────────────────────┤
    │ http_requests_total                │ counter   │ method, path,       │
    │ http_requests_duration_seconds     │ histogram │ service, status     │
    ├────────────────────────────────────┼───────────┼─────────────────────┤
    │ system_cpu_usage                   │ gauge     │ service             │
    │ system_total_memory                │ gauge     │                     │
    │ system_used_memory                 │ gauge     │                     │
    │ system_total_swap                  │ gauge     │                     │
    │ system_used_swap                   │ gauge     │                     │
    │ system_total_disks_space           │ gauge     │                     │
    │ system_used_disks_usage            │ gauge     │                     │
    └────────────────────────────────────┴───────────┴─────────────────────┘

``path`` is the route pattern ("/users/:id"), not the concrete path, so
the number of series stays bounded.

Each PrometheusMetrics owns its own CollectorRegistry. Pass the global
``prometheus_client.REGISTRY`` explicitly to share it with other
collectors.

=============================================================================
"""

from typing import Optional, Sequence
import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from .system import SystemMetrics
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, InternalServerError, ok


logger = logging.getLogger(__name__)

REQUEST_LABELS = ["method", "path", "service", "status"]

DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class PrometheusMetrics:
    """HTTP and system collectors registered on one registry."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        buckets: Sequence[float] = DURATION_BUCKETS,
    ):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.requests_total = Counter(
            "http_requests_total", "Total number of HTTP requests",
            REQUEST_LABELS, registry=self.registry,
        )
        self.requests_duration = Histogram(
            "http_requests_duration_seconds", "HTTP request duration in seconds",
            REQUEST_LABELS, buckets=buckets, registry=self.registry,
        )

        self.cpu_usage = self._gauge("system_cpu_usage", "CPU usage in percent")
        self.total_memory = self._gauge("system_total_memory", "Total memory in bytes")
        self.used_memory = self._gauge("system_used_memory", "Used memory in bytes")
        self.total_swap = self._gauge("system_total_swap", "Total swap in bytes")
        self.used_swap = self._gauge("system_used_swap", "Used swap in bytes")
        self.total_disks_space = self._gauge("system_total_disks_space", "Total disk space in bytes")
        self.used_disks_usage = self._gauge("system_used_disks_usage", "Used disk space in bytes")

    def _gauge(self, name: str, documentation: str) -> Gauge:
        return Gauge(name, documentation, ["service"], registry=self.registry)

    def record_request(self, method: str, path: str, service: str, status: int, duration: float) -> None:
        labels = (method, path, service, str(int(status)))
        self.requests_total.labels(*labels).inc()
        self.requests_duration.labels(*labels).observe(duration)

    def record_system(self, service: str, sample: SystemMetrics) -> None:
        self.cpu_usage.labels(service).set(sample.cpu_usage)
        self.total_memory.labels(service).set(sample.total_memory)
        self.used_memory.labels(service).set(sample.used_memory)
        self.total_swap.labels(service).set(sample.total_swap)
        self.used_swap.labels(service).set(sample.used_swap)
        self.total_disks_space.labels(service).set(sample.total_disks_space)
        self.used_disks_usage.labels(service).set(sample.used_disks_usage)

    def get(self, name: str, labels: Optional[dict] = None) -> Optional[float]:
        """Current value of a sample, e.g. get("http_requests_total", {...})."""
        return self.registry.get_sample_value(name, labels or {})

    def expose(self) -> bytes:
        """Prometheus text exposition of every collector on the registry."""
        return generate_latest(self.registry)


def metrics_handler(metrics: PrometheusMetrics):
    """
    Build the handler that serves the exposition, typically at /metrics.

        router.add_route("/metrics", metrics_handler(metrics), "GET")
    """
    def handle(request: HTTPRequest) -> HTTPResponse:
        try:
            body = metrics.expose()
        except Exception as e:
            logger.exception("Failed to render metrics")
            return InternalServerError(f"Failed to render metrics: {e}").to_response()
        return ok(body, CONTENT_TYPE_LATEST)

    return handle
