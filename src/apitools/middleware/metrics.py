"""
Request and host metrics collection.

After every request:

    1. unless the route is /metrics, count it and observe its duration,
       labeled by method, route pattern, service and status
    2. sample CPU/memory/swap/disk and update the system gauges

Scrapes of /metrics are left out of the request counters so scraping does
not show up as traffic; they still refresh the gauges, which is what keeps
them current for the scraper.

A failure while recording (a misconfigured registry, psutil errors) is
logged and replaces the response with a 500 naming the cause.
"""

from typing import Callable, Iterable, Optional
import logging
import time

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, InternalServerError
from ..metrics.prometheus import PrometheusMetrics
from ..metrics.system import DEFAULT_CPU_INTERVAL, SystemMetrics, sample_system_metrics


logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"


class MetricsMiddleware(Middleware):
    """
    Record request metrics into a PrometheusMetrics sink.

    Args:
        service_name:      value of the ``service`` label
        metrics:           the sink
        disk_mount_points: mount points summed into the disk gauges
        cpu_interval:      seconds between the two CPU readings; the worker
                           thread sleeps that long on every request
        sampler:           replaces sample_system_metrics, for tests
    """

    def __init__(
        self,
        service_name: str,
        metrics: PrometheusMetrics,
        disk_mount_points: Optional[Iterable[str]] = None,
        cpu_interval: float = DEFAULT_CPU_INTERVAL,
        sampler: Optional[Callable[[], SystemMetrics]] = None,
    ):
        self.service_name = service_name
        self.metrics = metrics
        self.disk_mount_points = list(disk_mount_points or ["/"])
        self.cpu_interval = cpu_interval
        self._sampler = sampler or self._sample

    def _sample(self) -> SystemMetrics:
        return sample_system_metrics(self.disk_mount_points, self.cpu_interval)

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()
        response = next(request)
        duration = time.perf_counter() - start_time

        path = request.route or request.path

        try:
            if path != METRICS_PATH:
                self.metrics.record_request(
                    request.method, path, self.service_name, response.status, duration
                )
            self.metrics.record_system(self.service_name, self._sampler())
        except Exception as e:
            logger.exception(f"Failed to record metrics for {request.method} {path}")
            return InternalServerError(f"Failed to record metrics: {e}").to_response()

        return response
