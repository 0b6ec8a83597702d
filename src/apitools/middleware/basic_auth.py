"""
HTTP Basic authentication for a whole pipeline.

Meant for small internal surfaces (an admin API, the /metrics endpoint
behind a scraper) with one fixed username/password pair.

    Authorization: Basic dXNlcjpwYXNz      → handler runs
    anything else                          → 401
                                             WWW-Authenticate: Basic realm="RESTRICTED"
                                             {"code": 401, "message": "Unauthorized"}
"""

from typing import Optional, Tuple
import base64
import binascii
import hmac

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, Unauthorized


DEFAULT_REALM = "RESTRICTED"


def parse_basic_credentials(value: str) -> Optional[Tuple[str, str]]:
    """
    Decode an ``Authorization: Basic`` header value into (username, password).

    None when the scheme is not Basic or the payload is not valid base64
    "user:pass".
    """
    scheme, _, encoded = value.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        return None

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


class BasicAuthMiddleware(Middleware):
    """Reject requests without the configured Basic credentials."""

    def __init__(self, username: str, password: str, realm: str = DEFAULT_REALM):
        self._username = username.encode("utf-8")
        self._password = password.encode("utf-8")
        self.realm = realm

    def _is_valid(self, credentials: Optional[Tuple[str, str]]) -> bool:
        if credentials is None:
            return False
        username, password = credentials
        # Both comparisons always run so timing does not reveal which one failed
        user_ok = hmac.compare_digest(username.encode("utf-8"), self._username)
        password_ok = hmac.compare_digest(password.encode("utf-8"), self._password)
        return user_ok and password_ok

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        credentials = parse_basic_credentials(request.get_header("authorization"))

        if not self._is_valid(credentials):
            return Unauthorized().to_response(
                {"WWW-Authenticate": f'Basic realm="{self.realm}"'}
            )

        return next(request)
