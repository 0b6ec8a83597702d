"""
=============================================================================
HTTP RESPONSE & API ERRORS
=============================================================================

The response object that flows back out through the middleware chain, a
fluent builder for it, and the ApiError family that renders the
normalized error body.

=============================================================================
THE NORMALIZED ERROR BODY
=============================================================================

Every error produced by this package, whichever unit produced it, has
the same JSON shape:

    {"code": 401, "message": "Unauthorized"}
    {"code": 422, "message": "name: field required", "trace_id": "4bf9..."}

    code      HTTP status as an int (duplicated so clients that only see
              the body still know it)
    message   human-readable description
    trace_id  only present while an OpenTelemetry span is active

=============================================================================
BUFFERED VS STREAMED BODIES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   body=b"..."            whole payload in memory, size is exact     │
    │                                                                      │
    │   stream=iter(chunks)    produced lazily, size unknown until read;  │
    │                          size_hint falls back to Content-Length     │
    │                          (or 0) as a lower bound                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A unit that must inspect the body (HttpErrorsMiddleware) calls
buffer(limit), which drains the stream into ``body`` and refuses to hold
more than ``limit`` bytes.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional, Union
import json

from .status_codes import HTTPStatus, reason_phrase
from ..tracing import current_trace_id


JSON_CONTENT_TYPE = "application/json"


@dataclass
class HTTPResponse:
    """
    An HTTP response on its way back to the client.

    ``status`` is a plain int so handlers can return codes HTTPStatus does
    not list. Header names keep the case they were set with; use
    get_header()/set_header() for case-insensitive access.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[Iterable[bytes]] = None
    version: str = "HTTP/1.1"

    @property
    def reason(self) -> str:
        return reason_phrase(self.status)

    @property
    def content_type(self) -> str:
        """Content-Type without parameters, lowercase; "" when unset."""
        return self.get_header("Content-Type").split(";")[0].strip().lower()

    @property
    def size_hint(self) -> int:
        """
        Lower bound of the body size in bytes.

        Exact for buffered bodies. For streamed bodies the bytes have not
        been produced yet, so this is the declared Content-Length when
        there is one, else 0.
        """
        if self.stream is None:
            return len(self.body)
        try:
            return int(self.get_header("Content-Length", "0"))
        except ValueError:
            return 0

    # =========================================================================
    # HEADERS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def has_header(self, name: str) -> bool:
        lowered = name.lower()
        return any(key.lower() == lowered for key in self.headers)

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set a header, replacing any existing one whatever its case.

        Returns self for chaining.
        """
        self.remove_header(name)
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> None:
        lowered = name.lower()
        for key in [k for k in self.headers if k.lower() == lowered]:
            del self.headers[key]

    # =========================================================================
    # BODY
    # =========================================================================

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Replace the body (str is UTF-8 encoded) and drop any stream."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.stream = None
        return self

    def iter_body(self) -> Iterator[bytes]:
        """Yield the body as chunks, whether buffered or streamed."""
        if self.stream is None:
            if self.body:
                yield self.body
            return
        yield from self.stream

    def buffer(self, limit: int) -> bytes:
        """
        Drain the body into memory, holding at most ``limit`` bytes.

        After a successful call ``body`` holds the full payload and
        ``stream`` is None.

        Raises:
            PayloadTooLarge: the body is longer than ``limit``. The stream
                             is left partially consumed; the caller is
                             expected to replace the response.
        """
        if self.stream is None:
            if len(self.body) > limit:
                raise PayloadTooLarge()
            return self.body

        chunks = []
        size = 0
        for chunk in self.stream:
            size += len(chunk)
            if size > limit:
                raise PayloadTooLarge()
            chunks.append(chunk)

        self.body = b"".join(chunks)
        self.stream = None
        return self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .json({"id": 42})
            .header("Location", "/users/42")
            .build())
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._stream: Optional[Iterable[bytes]] = None

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """Serialize ``data`` compactly and set Content-Type: application/json."""
        self._body = json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def stream(self, chunks: Iterable[bytes]) -> "ResponseBuilder":
        """Use a lazily produced body instead of a buffered one."""
        self._stream = chunks
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            stream=self._stream,
        )


# =============================================================================
# API ERRORS
# =============================================================================
#
# One exception class per client-visible failure. Raise them from a
# handler or a unit; the pipeline turns an escaping ApiError into its
# normalized response, so the outer units always get a response back.
#
#     raise NotFound("user 42 does not exist")
#
# =============================================================================

def error_body(status: int, message: str) -> Dict[str, Any]:
    """The normalized error envelope as a dict."""
    body: Dict[str, Any] = {"code": int(status), "message": message}
    trace_id = current_trace_id()
    if trace_id is not None:
        body["trace_id"] = trace_id
    return body


def error_response(
    status: int,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> HTTPResponse:
    """
    Build a response carrying the normalized error envelope.

    ``headers`` are applied after Content-Type, e.g. WWW-Authenticate on a
    401.
    """
    builder = ResponseBuilder().status(status).json(error_body(status, message))
    if headers:
        builder.headers(headers)
    return builder.build()


class ApiError(Exception):
    """
    Base class for errors rendered to clients as the normalized body.

    Subclasses set ``status`` and ``default_message``. Errors whose
    message is fixed (timeouts, 405, 413, 429, 503) take no argument;
    the others carry a caller-supplied description.
    """

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"
    label: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message if message is not None else self.default_message
        super().__init__(f"{self.label}: {self.message}" if message is not None else self.label)

    @staticmethod
    def from_token_error(error: Exception) -> "ApiError":
        """
        Map a token engine failure to a client error.

        Engine failures reaching a handler are server-side problems
        (missing key, signing failure), so they become a 500 carrying the
        error text. Bearer authentication maps expiry and parse failures
        to 401 itself before they get here.
        """
        return InternalServerError(str(error))

    def to_body(self) -> Dict[str, Any]:
        return error_body(self.status, self.message)

    def to_response(self, headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
        return error_response(self.status, self.message, headers)


class BadRequest(ApiError):
    status = HTTPStatus.BAD_REQUEST
    default_message = "Bad request"
    label = "Bad request"


class Unauthorized(ApiError):
    status = HTTPStatus.UNAUTHORIZED
    default_message = "Unauthorized"
    label = "Unauthorized"


class Forbidden(ApiError):
    status = HTTPStatus.FORBIDDEN
    default_message = "Forbidden"
    label = "Forbidden"


class NotFound(ApiError):
    status = HTTPStatus.NOT_FOUND
    default_message = "Not found"
    label = "Not found"


class UnprocessableEntity(ApiError):
    status = HTTPStatus.UNPROCESSABLE_ENTITY
    default_message = "Unprocessable entity"
    label = "Unprocessable entity"


class InternalServerError(ApiError):
    pass


class RequestTimeout(ApiError):
    status = HTTPStatus.REQUEST_TIMEOUT
    default_message = "Request timeout"
    label = "Timeout"


class TooManyRequests(ApiError):
    status = HTTPStatus.TOO_MANY_REQUESTS
    default_message = "Too many requests"
    label = "Too many requests"


class MethodNotAllowed(ApiError):
    status = HTTPStatus.METHOD_NOT_ALLOWED
    default_message = "Method not allowed"
    label = "Method not allowed"


class PayloadTooLarge(ApiError):
    status = HTTPStatus.PAYLOAD_TOO_LARGE
    default_message = "Payload too large"
    label = "Payload too large"


class ServiceUnavailable(ApiError):
    status = HTTPStatus.SERVICE_UNAVAILABLE
    default_message = "Service unavailable"
    label = "Service unavailable"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes, dict, list] = "", content_type: Optional[str] = None) -> HTTPResponse:
    """
    200 OK. dict/list become JSON, str becomes text/plain, bytes are sent
    as-is (with ``content_type`` when given).
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)

    if isinstance(body, (dict, list)):
        builder.json(body)
    elif isinstance(body, str):
        builder.text(body, content_type or "text/plain; charset=utf-8")
    else:
        builder.body(body)
        if content_type:
            builder.content_type(content_type)

    return builder.build()


def created(body: Union[dict, list], location: Optional[str] = None) -> HTTPResponse:
    """201 Created with a JSON body and optional Location header."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED).json(body)
    if location:
        builder.header("Location", location)
    return builder.build()


def no_content() -> HTTPResponse:
    """204 No Content."""
    return ResponseBuilder().status(HTTPStatus.NO_CONTENT).build()
