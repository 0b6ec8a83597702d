"""
=============================================================================
HTTP MESSAGES
=============================================================================

The request/response model the middleware pipeline works on. There is no
wire parser here: the host server builds an HTTPRequest and serializes
the HTTPResponse it gets back.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       HTTPRequest: headers (lowercase), path, query,     │
    │                  body, plus path_params/route/extensions filled in  │
    │                  on the way in                                       │
    │                                                                      │
    │ response.py      HTTPResponse (buffered or streamed body),          │
    │                  ResponseBuilder, ApiError family and the           │
    │                  normalized {"code", "message", "trace_id"} body    │
    │                                                                      │
    │ router.py        method + path → handler, 404/405                   │
    │                                                                      │
    │ status_codes.py  HTTPStatus with reason phrases                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ApiError,
    BadRequest,
    Unauthorized,
    Forbidden,
    NotFound,
    UnprocessableEntity,
    InternalServerError,
    RequestTimeout,
    TooManyRequests,
    MethodNotAllowed,
    PayloadTooLarge,
    ServiceUnavailable,
    error_body,
    error_response,
    ok,
    created,
    no_content,
)
from .router import Router, Route
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    "HTTPRequest",
    "HTTPResponse",
    "ResponseBuilder",
    "ApiError",
    "BadRequest",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "UnprocessableEntity",
    "InternalServerError",
    "RequestTimeout",
    "TooManyRequests",
    "MethodNotAllowed",
    "PayloadTooLarge",
    "ServiceUnavailable",
    "error_body",
    "error_response",
    "ok",
    "created",
    "no_content",
    "Router",
    "Route",
    "HTTPStatus",
    "reason_phrase",
]
