"""
=============================================================================
HTTP ERROR NORMALIZATION MIDDLEWARE
=============================================================================

Makes sure clients only ever see the normalized error body, whatever the
handler or an inner unit produced.

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │ Response from inside             │ Sent to the client               │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │ image/*, audio/*, video/*        │ unchanged, never buffered        │
    │ body > body_max_size             │ 413 {"message": "Payload too     │
    │                                  │      large"}                     │
    │ 405 (any body)                   │ 405 {"message": "Method not      │
    │                                  │      allowed"}, Allow kept       │
    │ 422 "name: field required"       │ 422 {"message": "name: field     │
    │                                  │      required"}                  │
    │ anything else                    │ unchanged status and headers,    │
    │                                  │ body buffered                    │
    └──────────────────────────────────┴──────────────────────────────────┘

Buffering means a streamed body is read into memory here, so keep
body_max_size at a value the process can afford per request.

A 422 body that is not valid UTF-8 is decoded with replacement
characters. Other non-UTF-8 bodies (PDFs, archives) pass through as they
are.

=============================================================================
"""

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, MethodNotAllowed, PayloadTooLarge, UnprocessableEntity
from ..http.status_codes import HTTPStatus


DEFAULT_BODY_MAX_SIZE = 1024 * 1024

PASSTHROUGH_PREFIXES = ("image/", "audio/", "video/")


class HttpErrorsMiddleware(Middleware):
    """Rewrite error responses into the normalized envelope."""

    def __init__(self, body_max_size: int = DEFAULT_BODY_MAX_SIZE):
        self.body_max_size = body_max_size

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        if response.content_type.startswith(PASSTHROUGH_PREFIXES):
            return response

        try:
            body = response.buffer(self.body_max_size)
        except PayloadTooLarge as e:
            return e.to_response()

        if response.status == HTTPStatus.METHOD_NOT_ALLOWED:
            allow = response.get_header("Allow")
            return MethodNotAllowed().to_response({"Allow": allow} if allow else None)

        if response.status == HTTPStatus.UNPROCESSABLE_ENTITY:
            return UnprocessableEntity(body.decode("utf-8", errors="replace")).to_response()

        return response
