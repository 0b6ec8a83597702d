"""
=============================================================================
MIDDLEWARE UNITS
=============================================================================

Cross-cutting request/response processing, one concern per unit:

    ┌─────────────────────────────┬──────────────────────────────────────┐
    │ Unit                        │ Does                                 │
    ├─────────────────────────────┼──────────────────────────────────────┤
    │ RequestIdMiddleware         │ ensures X-Request-Id, echoes it      │
    │ LoggingMiddleware           │ one access log record per request    │
    │ MetricsMiddleware           │ Prometheus counters, system gauges   │
    │ SecurityHeadersMiddleware   │ CSP, HSTS, X-Frame-Options, ...      │
    │ CORSMiddleware              │ preflight + Allow-Origin             │
    │ HttpErrorsMiddleware        │ 405/413/422 → normalized body        │
    │ TimeLimiterMiddleware       │ 503 inside configured time slots     │
    │ BasicAuthMiddleware         │ fixed user/password, 401             │
    │ BearerAuthMiddleware        │ JWT verification, claims → request   │
    └─────────────────────────────┴──────────────────────────────────────┘

A typical order, outermost first, is the order of the table: request
ids before logging so the log has the id, logging and metrics before
anything that can short-circuit so rejected requests are still counted,
CORS before authentication so preflights need no credentials.

    pipeline = MiddlewarePipeline().use(
        RequestIdMiddleware(),
        LoggingMiddleware(),
        BasicAuthMiddleware("admin", "s3cret"),
    )
    handler = pipeline.wrap(router.handle)

=============================================================================
"""

from .base import (
    Middleware,
    MiddlewarePipeline,
    NextHandler,
    FunctionMiddleware,
    function_middleware,
    guarded,
)
from .basic_auth import BasicAuthMiddleware, parse_basic_credentials
from .bearer_auth import BearerAuthMiddleware
from .cors import CORSMiddleware, CORSConfig, parse_origins
from .http_errors import HttpErrorsMiddleware
from .logging import LoggingMiddleware, RequestLog, format_byte_size
from .metrics import MetricsMiddleware
from .request_id import RequestIdMiddleware, extract_request_id
from .security_headers import SecurityHeadersMiddleware, SecurityHeadersConfig
from .time_limiter import TimeLimiterMiddleware, TimeSlot, TimeSlots, TimeSlotsError

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "FunctionMiddleware",
    "function_middleware",
    "guarded",
    "BasicAuthMiddleware",
    "parse_basic_credentials",
    "BearerAuthMiddleware",
    "CORSMiddleware",
    "CORSConfig",
    "parse_origins",
    "HttpErrorsMiddleware",
    "LoggingMiddleware",
    "RequestLog",
    "format_byte_size",
    "MetricsMiddleware",
    "RequestIdMiddleware",
    "extract_request_id",
    "SecurityHeadersMiddleware",
    "SecurityHeadersConfig",
    "TimeLimiterMiddleware",
    "TimeSlot",
    "TimeSlots",
    "TimeSlotsError",
]
