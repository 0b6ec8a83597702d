"""
Security response headers.

Sets the usual hardening headers on every response, replacing whatever
the handler set:

    Content-Security-Policy      default-src 'self';
    Strict-Transport-Security    max-age=31536000; includeSubDomains; preload
    X-Content-Type-Options       nosniff
    X-Frame-Options              DENY
    X-XSS-Protection             1; mode=block
    Referrer-Policy              no-referrer
    Permissions-Policy           geolocation=(self), microphone=(), camera=()
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


@dataclass
class SecurityHeadersConfig:
    content_security_policy: str = "default-src 'self';"
    strict_transport_security: str = "max-age=31536000; includeSubDomains; preload"
    x_content_type_options: str = "nosniff"
    x_frame_options: str = "DENY"
    x_xss_protection: str = "1; mode=block"
    referrer_policy: str = "no-referrer"
    permissions_policy: str = "geolocation=(self), microphone=(), camera=()"

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Security-Policy": self.content_security_policy,
            "Strict-Transport-Security": self.strict_transport_security,
            "X-Content-Type-Options": self.x_content_type_options,
            "X-Frame-Options": self.x_frame_options,
            "X-XSS-Protection": self.x_xss_protection,
            "Referrer-Policy": self.referrer_policy,
            "Permissions-Policy": self.permissions_policy,
        }


class SecurityHeadersMiddleware(Middleware):
    """Overwrite the security headers on every response."""

    def __init__(self, config: Optional[SecurityHeadersConfig] = None):
        self.config = config or SecurityHeadersConfig()
        self._headers = self.config.headers()

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)
        for name, value in self._headers.items():
            response.set_header(name, value)
        return response
