"""
Unit tests for RequestIdMiddleware and SecurityHeadersMiddleware.
"""

import uuid

from apitools.http import HTTPRequest, ok
from apitools.middleware import (
    MiddlewarePipeline,
    RequestIdMiddleware,
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
    extract_request_id,
)


class TestRequestIdMiddleware:
    """Tests for RequestIdMiddleware."""

    def setup_method(self):
        self.seen = []

        def handler(request):
            self.seen.append(extract_request_id(request))
            return ok()

        self.handler = MiddlewarePipeline().add(RequestIdMiddleware()).wrap(handler)

    def test_keeps_incoming_id(self):
        response = self.handler(HTTPRequest.create("GET", "/", {"X-Request-Id": "abc"}))

        assert self.seen == ["abc"]
        assert response.get_header("X-Request-Id") == "abc"

    def test_generates_uuid(self):
        response = self.handler(HTTPRequest.create("GET", "/"))

        generated = response.get_header("X-Request-Id")
        assert uuid.UUID(generated).version == 4
        assert self.seen == [generated]

    def test_blank_id_replaced(self):
        response = self.handler(HTTPRequest.create("GET", "/", {"X-Request-Id": "  "}))

        assert response.get_header("X-Request-Id").strip() != ""

    def test_ids_are_unique(self):
        first = self.handler(HTTPRequest.create("GET", "/")).get_header("X-Request-Id")
        second = self.handler(HTTPRequest.create("GET", "/")).get_header("X-Request-Id")

        assert first != second

    def test_custom_header(self):
        handler = MiddlewarePipeline().add(RequestIdMiddleware("X-Correlation-Id")).wrap(lambda r: ok())

        response = handler(HTTPRequest.create("GET", "/", {"x-correlation-id": "c-1"}))

        assert response.get_header("X-Correlation-Id") == "c-1"

    def test_extract_without_id(self):
        assert extract_request_id(HTTPRequest.create("GET", "/")) == ""


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    def test_default_headers(self):
        handler = MiddlewarePipeline().add(SecurityHeadersMiddleware()).wrap(lambda r: ok())

        response = handler(HTTPRequest.create("GET", "/"))

        assert response.get_header("Content-Security-Policy") == "default-src 'self';"
        assert response.get_header("Strict-Transport-Security") == "max-age=31536000; includeSubDomains; preload"
        assert response.get_header("X-Content-Type-Options") == "nosniff"
        assert response.get_header("X-Frame-Options") == "DENY"
        assert response.get_header("X-XSS-Protection") == "1; mode=block"
        assert response.get_header("Referrer-Policy") == "no-referrer"
        assert response.get_header("Permissions-Policy") == "geolocation=(self), microphone=(), camera=()"

    def test_overwrites_handler_value(self):
        """The configured value wins over whatever the handler set."""
        def handler(request):
            response = ok()
            response.set_header("x-frame-options", "SAMEORIGIN")
            return response

        response = MiddlewarePipeline().add(SecurityHeadersMiddleware()).wrap(handler)(
            HTTPRequest.create("GET", "/")
        )

        assert response.get_header("X-Frame-Options") == "DENY"
        assert [k for k in response.headers if k.lower() == "x-frame-options"] == ["X-Frame-Options"]

    def test_applied_to_errors(self):
        def handler(request):
            raise RuntimeError("boom")

        response = MiddlewarePipeline().add(SecurityHeadersMiddleware()).wrap(handler)(
            HTTPRequest.create("GET", "/")
        )

        assert response.status == 500
        assert response.get_header("X-Content-Type-Options") == "nosniff"

    def test_custom_config(self):
        config = SecurityHeadersConfig(x_frame_options="SAMEORIGIN")
        handler = MiddlewarePipeline().add(SecurityHeadersMiddleware(config)).wrap(lambda r: ok())

        response = handler(HTTPRequest.create("GET", "/"))

        assert response.get_header("X-Frame-Options") == "SAMEORIGIN"
