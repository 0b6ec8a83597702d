"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the pipeline and its units actually produce or inspect,
with their canonical reason phrases (RFC 9110).

=============================================================================
WHICH CODES MATTER HERE
=============================================================================

    ┌───────┬──────────────────────────────┬──────────────────────────────┐
    │ Code  │ Produced by                  │ Why                          │
    ├───────┼──────────────────────────────┼──────────────────────────────┤
    │ 401   │ BasicAuth / BearerAuth       │ missing or bad credentials   │
    │ 405   │ Router                       │ path exists, method doesn't  │
    │ 413   │ HttpErrors                   │ body exceeds buffer limit    │
    │ 422   │ handlers                     │ rewritten into the envelope  │
    │ 500   │ pipeline                     │ unexpected exception         │
    │ 503   │ TimeLimiter                  │ request inside a denied slot │
    └───────┴──────────────────────────────┴──────────────────────────────┘

LoggingMiddleware logs 5xx at ERROR, except 503, which is an expected
outcome of the time limiter.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with reason phrases.

    IntEnum, so members compare equal to plain ints:

        >>> HTTPStatus.UNAUTHORIZED == 401
        True
        >>> HTTPStatus(503).phrase
        'Service Unavailable'
    """

    # 2xx
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line ("HTTP/1.1 404 Not Found")."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.UNPROCESSABLE_ENTITY: "Unprocessable Entity",
    HTTPStatus.TOO_MANY_REQUESTS: "Too Many Requests",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}


def reason_phrase(code: int) -> str:
    """Reason phrase for any int code, "Unknown" for codes not listed above."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
