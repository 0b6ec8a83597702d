"""
Unit tests for HTTP request model.
"""

import pytest

from apitools.http.request import HTTPRequest


class TestCreate:
    """Tests for HTTPRequest.create()."""

    def test_simple_get(self):
        request = HTTPRequest.create("get", "/index.html")

        assert request.method == "GET"
        assert request.path == "/index.html"
        assert request.query_string == ""
        assert request.version == "HTTP/1.1"

    def test_headers_lowercased(self):
        request = HTTPRequest.create("GET", "/", {"Host": "localhost", "User-Agent": "Test"})

        assert request.headers == {"host": "localhost", "user-agent": "Test"}
        assert request.host == "localhost"
        assert request.user_agent == "Test"

    def test_query_string(self):
        request = HTTPRequest.create("GET", "/search?q=python&page=1")

        assert request.path == "/search"
        assert request.query_string == "q=python&page=1"
        assert request.uri == "/search?q=python&page=1"
        assert request.get_query("q") == "python"
        assert request.get_query("missing", "default") == "default"

    def test_repeated_query_param(self):
        request = HTTPRequest.create("GET", "/?tags=python&tags=http")

        assert request.query_params["tags"] == ["python", "http"]
        assert request.get_query("tags") == "python"

    def test_path_decoded(self):
        request = HTTPRequest.create("GET", "/path%20with%20spaces")

        assert request.path == "/path with spaces"

    def test_empty_path(self):
        assert HTTPRequest.create("GET", "").path == "/"

    def test_json_body(self):
        request = HTTPRequest.create(
            "POST", "/api/users", {"Content-Type": "application/json; charset=utf-8"},
            body=b'{"name": "John"}',
        )

        assert request.content_type == "application/json"
        assert request.json == {"name": "John"}

    def test_empty_json_body(self):
        assert HTTPRequest.create("POST", "/").json is None

    def test_extra_fields(self):
        request = HTTPRequest.create("GET", "/", version="HTTP/1.0", client_address=("10.0.0.1", 5000))

        assert request.version == "HTTP/1.0"
        assert request.client_address == ("10.0.0.1", 5000)


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        """Test get_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_case_insensitive_headers(self):
        request = HTTPRequest.create("GET", "/", {"Content-Type": "text/html"})

        assert request.get_header("content-type") == "text/html"
        assert request.get_header("CONTENT-TYPE") == "text/html"

    def test_set_header(self):
        request = HTTPRequest(method="GET", path="/")
        request.set_header("X-Request-Id", "abc")

        assert request.headers == {"x-request-id": "abc"}

    def test_uri_without_query(self):
        assert HTTPRequest(method="GET", path="/users").uri == "/users"

    def test_defaults(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.route is None
        assert request.path_params == {}
        assert request.extensions == {}
        assert request.content_type is None

    def test_invalid_json(self):
        request = HTTPRequest.create("POST", "/", body=b"{not json")

        with pytest.raises(ValueError):
            request.json
