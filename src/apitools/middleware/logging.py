"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log record per request, written after the response came back.

=============================================================================
WHAT GETS LOGGED
=============================================================================

    GET /users?page=2 200 "curl/8.5.0" host=api.local request_id=9b1d...
        version=HTTP/1.1 latency=3.12ms size=1.5 KiB

The same fields are attached to the record as ``extra`` attributes
(record.status_code, record.path, ...), so a JSON formatter or a test can
read them without parsing the message. ``size`` is the response's
size_hint: exact for buffered bodies, a lower bound for streamed ones.

=============================================================================
SEVERITY
=============================================================================

    ┌──────────────────────────────┬────────────────────────────────────┐
    │ Outcome                      │ Level                              │
    ├──────────────────────────────┼────────────────────────────────────┤
    │ 5xx except 503               │ ERROR                              │
    │ 503                          │ INFO (planned unavailability)      │
    │ anything else                │ INFO                               │
    │ path starts with /metrics    │ not logged, unless it is an ERROR  │
    └──────────────────────────────┴────────────────────────────────────┘

Scrapers hit /metrics every few seconds; logging those would drown the
real traffic.

The logger is "apitools.access", so access logs can be routed or
silenced independently:

    logging.getLogger("apitools.access").setLevel(logging.WARNING)

=============================================================================
"""

from dataclasses import dataclass, asdict
from typing import Optional
import json
import logging
import time

from .base import Middleware, NextHandler
from .request_id import REQUEST_ID_HEADER, extract_request_id
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


logger = logging.getLogger("apitools.access")

METRICS_PATH_PREFIX = "/metrics"

_BYTE_UNITS = ["KiB", "MiB", "GiB", "TiB"]


def format_byte_size(size: int) -> str:
    """
    Human-readable binary size.

        >>> format_byte_size(512)
        '512 B'
        >>> format_byte_size(1536)
        '1.5 KiB'
    """
    if size < 1024:
        return f"{size} B"

    value = float(size)
    for unit in _BYTE_UNITS:
        value /= 1024
        if value < 1024 or unit == _BYTE_UNITS[-1]:
            break
    return f"{value:.2f}".rstrip("0").rstrip(".") + f" {unit}"


@dataclass
class RequestLog:
    """Structured access log entry."""

    status_code: int
    method: str
    path: str
    uri: str
    host: str
    request_id: str
    user_agent: str
    version: str
    latency_ms: float
    body_size: int

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["latency_ms"] = round(self.latency_ms, 3)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.method} {self.uri} {self.status_code} "{self.user_agent or "-"}" '
            f"host={self.host or '-'} request_id={self.request_id or '-'} "
            f"version={self.version} latency={self.latency_ms:.2f}ms "
            f"size={format_byte_size(self.body_size)}"
        )


def log_level_for(status: int, path: str) -> Optional[int]:
    """Level to log a request at, or None to skip it."""
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR and status != HTTPStatus.SERVICE_UNAVAILABLE:
        return logging.ERROR
    if path.startswith(METRICS_PATH_PREFIX):
        return None
    return logging.INFO


class LoggingMiddleware(Middleware):
    """
    Access log middleware.

    Args:
        log_format:        "text" (one line, see module docstring) or
                           "json" (the entry serialized as the message)
        request_id_header: where RequestIdMiddleware put the id
    """

    def __init__(self, log_format: str = "text", request_id_header: str = REQUEST_ID_HEADER):
        self.log_format = log_format
        self.request_id_header = request_id_header

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()
        response = next(request)
        latency_ms = (time.perf_counter() - start_time) * 1000

        level = log_level_for(response.status, request.path)
        if level is None:
            return response

        entry = RequestLog(
            status_code=int(response.status),
            method=request.method,
            path=request.path,
            uri=request.uri,
            host=request.host,
            request_id=extract_request_id(request, self.request_id_header),
            user_agent=request.user_agent,
            version=response.version,
            latency_ms=latency_ms,
            body_size=response.size_hint,
        )

        if self.log_format == "json":
            message = json.dumps(entry.to_dict())
        else:
            message = entry.to_text()
        logger.log(level, message, extra=entry.to_dict())

        return response
