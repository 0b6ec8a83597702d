"""
=============================================================================
CORS (Cross-Origin Resource Sharing) MIDDLEWARE
=============================================================================

Tells browsers which foreign origins may call this API.

=============================================================================
ORIGIN MODES
=============================================================================

``allow_origin`` is one configuration string:

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │ allow_origin                     │ Behavior                         │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │ "*"                              │ any origin, no credentials,      │
    │                                  │ Allow-Origin: *                  │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │ "https://a.com,https://b.com"    │ exact match only, origin echoed  │
    │                                  │ back, Allow-Credentials: true,   │
    │                                  │ Vary: Origin                     │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │ "" / " , *" (nothing left after  │ falls back to any origin         │
    │ dropping blanks and "*")         │                                  │
    └──────────────────────────────────┴──────────────────────────────────┘

A disallowed origin gets no CORS headers at all; the browser then blocks
the response.

=============================================================================
PREFLIGHT
=============================================================================

    OPTIONS /api/users
    Origin: https://a.com
    Access-Control-Request-Method: DELETE

is answered here with 204 and the allowed methods/headers; it never
reaches the handler. An OPTIONS request without
Access-Control-Request-Method is an ordinary request.

Put CORS outside authentication so preflights succeed without
credentials.

=============================================================================
"""

from typing import Optional, List
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


ANY_ORIGIN = "*"


def parse_origins(allow_origin: str) -> Optional[List[str]]:
    """
    Turn the allow_origin setting into an origin list.

    Returns None for "any origin".
    """
    if allow_origin.strip() == ANY_ORIGIN:
        return None
    origins = [
        origin.strip()
        for origin in allow_origin.split(",")
        if origin.strip() and origin.strip() != ANY_ORIGIN
    ]
    return origins or None


@dataclass
class CORSConfig:
    """
    CORS settings.

        CORSConfig()                                      # any origin
        CORSConfig(allow_origin="https://app.example.com",
                   allow_methods=["GET", "POST"])
    """

    allow_origin: str = ANY_ORIGIN
    allow_methods: List[str] = None
    allow_headers: List[str] = None
    expose_headers: List[str] = None
    max_age: int = 86400

    def __post_init__(self):
        if self.allow_methods is None:
            self.allow_methods = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
        if self.allow_headers is None:
            self.allow_headers = ["Content-Type", "Authorization", "X-Request-Id"]
        if self.expose_headers is None:
            self.expose_headers = []

    @property
    def origins(self) -> Optional[List[str]]:
        return parse_origins(self.allow_origin)


class CORSMiddleware(Middleware):
    """Answers preflights and adds CORS headers to responses."""

    def __init__(self, config: Optional[CORSConfig] = None):
        self.config = config or CORSConfig()
        self._origins = self.config.origins

    @property
    def allows_any_origin(self) -> bool:
        return self._origins is None

    def is_origin_allowed(self, origin: str) -> bool:
        if self._origins is None:
            return True
        return origin in self._origins

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        origin = request.get_header("origin")

        if request.method == "OPTIONS" and request.get_header("access-control-request-method"):
            return self._handle_preflight(request, origin)

        response = next(request)
        self._add_cors_headers(response, origin)
        return response

    def _handle_preflight(self, request: HTTPRequest, origin: str) -> HTTPResponse:
        response = ResponseBuilder().status(HTTPStatus.NO_CONTENT).build()

        if not self._add_cors_headers(response, origin):
            return response

        response.set_header("Access-Control-Allow-Methods", ", ".join(self.config.allow_methods))
        response.set_header("Access-Control-Allow-Headers", ", ".join(self.config.allow_headers))
        response.set_header("Access-Control-Max-Age", str(self.config.max_age))
        return response

    def _add_cors_headers(self, response: HTTPResponse, origin: str) -> bool:
        """Add the origin-dependent headers. Returns False for a rejected origin."""
        if self.allows_any_origin:
            response.set_header("Access-Control-Allow-Origin", ANY_ORIGIN)
        else:
            # Caches must not serve one origin's answer to another
            vary = response.get_header("Vary")
            if "origin" not in vary.lower():
                response.set_header("Vary", f"{vary}, Origin".lstrip(", "))

            if not origin or not self.is_origin_allowed(origin):
                return False
            response.set_header("Access-Control-Allow-Origin", origin)
            response.set_header("Access-Control-Allow-Credentials", "true")

        if self.config.expose_headers:
            response.set_header("Access-Control-Expose-Headers", ", ".join(self.config.expose_headers))
        return True
