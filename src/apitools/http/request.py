"""
=============================================================================
HTTP REQUEST
=============================================================================

The request object every middleware unit and handler receives.

The host server (socket loop, WSGI adapter, test client) owns parsing the
wire format; it hands the pipeline an HTTPRequest. Units read headers from
it, and a few write back into it on the way in:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  WHO WRITES WHAT ON THE REQUEST                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   RequestIdMiddleware   headers["x-request-id"]                     │
    │   BearerAuthMiddleware  extensions["claims"]                        │
    │   Router                path_params, route                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Everything a unit wants to pass inward that is not an HTTP header goes in
``extensions``. Headers are stored with lowercase names, since HTTP header
names are case-insensitive.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs, unquote, urlsplit
import json


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         GET, POST, ...
        path:           URL-decoded path without the query string
        query_string:   raw query string ("page=1&limit=10"), no "?"
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        header name (lowercase) -> value
        body:           raw body bytes
        client_address: (ip, port) of the peer
        path_params:    values captured by the router (":id" -> "42")
        route:          route pattern matched by the router, e.g.
                        "/users/:id"; None until routing happened or
                        when nothing matched
        extensions:     per-request values set by middleware
    """

    method: str
    path: str
    query_string: str = ""
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)
    path_params: Dict[str, str] = field(default_factory=dict)
    route: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        method: str,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        **kwargs: Any,
    ) -> "HTTPRequest":
        """
        Build a request from a request-target and a header mapping.

        Header names are lowercased; the URI is split into path and query.

            HTTPRequest.create("GET", "/users?page=2", {"Host": "api.local"})
        """
        parts = urlsplit(uri)
        return cls(
            method=method.upper(),
            path=unquote(parts.path) or "/",
            query_string=parts.query,
            headers={name.lower(): value for name, value in (headers or {}).items()},
            body=body,
            **kwargs,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def uri(self) -> str:
        """Path plus query string, as it appeared on the request line."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def query_params(self) -> Dict[str, list[str]]:
        """Query string parsed into name -> list of values."""
        return parse_qs(self.query_string, keep_blank_values=True)

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters ("application/json")."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def json(self) -> Any:
        """Body decoded as JSON; None for an empty body."""
        if not self.body:
            return None
        return json.loads(self.body.decode("utf-8"))

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def set_header(self, name: str, value: str) -> None:
        """Set a request header (stored lowercase) for inner units to read."""
        self.headers[name.lower()] = value

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default
