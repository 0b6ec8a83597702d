"""
Request id propagation.

Gives every request an id that shows up in the access log, is visible to
handlers, and is echoed to the client so a bug report can quote it:

    client ──X-Request-Id: abc──▶ kept as is
    client ─────(no header)─────▶ uuid4 generated
                                      │
                 request.headers["x-request-id"]   (inner units, handler)
                 response X-Request-Id             (client)

Place it outermost so LoggingMiddleware already sees the id.
"""

import uuid

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


REQUEST_ID_HEADER = "x-request-id"


def _display_name(header_name: str) -> str:
    return "-".join(part.capitalize() for part in header_name.split("-"))


def extract_request_id(request: HTTPRequest, header_name: str = REQUEST_ID_HEADER) -> str:
    """The request id set by RequestIdMiddleware, or "" when there is none."""
    return request.get_header(header_name)


class RequestIdMiddleware(Middleware):
    """Ensure every request carries an id and echo it on the response."""

    def __init__(self, header_name: str = REQUEST_ID_HEADER):
        self.header_name = header_name.lower()
        self._response_header = _display_name(self.header_name)

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = request.get_header(self.header_name).strip()
        if not request_id:
            request_id = str(uuid.uuid4())
        request.set_header(self.header_name, request_id)

        response = next(request)
        response.set_header(self._response_header, request_id)
        return response
