"""
Unit tests for CORSMiddleware.
"""

from apitools.http import HTTPRequest, ok
from apitools.middleware import CORSConfig, CORSMiddleware, MiddlewarePipeline, parse_origins


def make_request(method="GET", origin=None, headers=None) -> HTTPRequest:
    all_headers = dict(headers or {})
    if origin:
        all_headers["Origin"] = origin
    return HTTPRequest.create(method, "/api/users", all_headers)


def make_handler(allow_origin="*", **kwargs):
    calls = []

    def handler(request):
        calls.append(request)
        return ok("users")

    cors = CORSMiddleware(CORSConfig(allow_origin=allow_origin, **kwargs))
    return MiddlewarePipeline().add(cors).wrap(handler), calls


class TestParseOrigins:
    def test_star(self):
        assert parse_origins("*") is None

    def test_list(self):
        assert parse_origins("https://a.com, https://b.com") == ["https://a.com", "https://b.com"]

    def test_empty_falls_back_to_any(self):
        assert parse_origins("") is None
        assert parse_origins(" , *") is None


class TestCORSMiddleware:
    """Tests for CORSMiddleware."""

    def test_any_origin(self):
        handler, _ = make_handler("*")

        response = handler(make_request(origin="https://x.com"))

        assert response.get_header("Access-Control-Allow-Origin") == "*"
        assert not response.has_header("Access-Control-Allow-Credentials")

    def test_allowed_origin_echoed(self):
        handler, _ = make_handler("https://a.com,https://b.com")

        response = handler(make_request(origin="https://b.com"))

        assert response.get_header("Access-Control-Allow-Origin") == "https://b.com"
        assert response.get_header("Access-Control-Allow-Credentials") == "true"
        assert response.get_header("Vary") == "Origin"

    def test_disallowed_origin_gets_no_cors_headers(self):
        handler, calls = make_handler("https://a.com")

        response = handler(make_request(origin="https://evil.com"))

        assert response.status == 200
        assert len(calls) == 1
        assert not response.has_header("Access-Control-Allow-Origin")
        assert response.get_header("Vary") == "Origin"

    def test_empty_setting_allows_any(self):
        handler, _ = make_handler("")

        response = handler(make_request(origin="https://x.com"))

        assert response.get_header("Access-Control-Allow-Origin") == "*"

    def test_preflight(self):
        """A preflight is answered here and never reaches the handler."""
        handler, calls = make_handler(
            "https://a.com", allow_methods=["GET", "DELETE"], allow_headers=["Content-Type"]
        )

        response = handler(make_request(
            "OPTIONS", origin="https://a.com",
            headers={"Access-Control-Request-Method": "DELETE"},
        ))

        assert response.status == 204
        assert calls == []
        assert response.get_header("Access-Control-Allow-Methods") == "GET, DELETE"
        assert response.get_header("Access-Control-Allow-Headers") == "Content-Type"
        assert response.get_header("Access-Control-Max-Age") == "86400"
        assert response.get_header("Access-Control-Allow-Origin") == "https://a.com"

    def test_preflight_from_disallowed_origin(self):
        handler, calls = make_handler("https://a.com")

        response = handler(make_request(
            "OPTIONS", origin="https://evil.com",
            headers={"Access-Control-Request-Method": "DELETE"},
        ))

        assert response.status == 204
        assert calls == []
        assert not response.has_header("Access-Control-Allow-Methods")

    def test_plain_options_reaches_handler(self):
        handler, calls = make_handler("*")

        handler(make_request("OPTIONS", origin="https://x.com"))

        assert len(calls) == 1

    def test_vary_appended(self):
        cors = CORSMiddleware(CORSConfig(allow_origin="https://a.com"))

        def handler(request):
            response = ok()
            response.set_header("Vary", "Accept-Encoding")
            return response

        response = MiddlewarePipeline().add(cors).wrap(handler)(make_request(origin="https://a.com"))

        assert response.get_header("Vary") == "Accept-Encoding, Origin"

    def test_expose_headers(self):
        handler, _ = make_handler("*", expose_headers=["X-Request-Id"])

        response = handler(make_request(origin="https://x.com"))

        assert response.get_header("Access-Control-Expose-Headers") == "X-Request-Id"
