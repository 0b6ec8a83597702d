"""
Unit tests for HTTP response building and API errors.
"""

import json

import pytest

from apitools.http.response import (
    ApiError,
    BadRequest,
    HTTPResponse,
    MethodNotAllowed,
    NotFound,
    PayloadTooLarge,
    RequestTimeout,
    ResponseBuilder,
    ServiceUnavailable,
    TooManyRequests,
    Unauthorized,
    UnprocessableEntity,
    created,
    error_body,
    error_response,
    no_content,
    ok,
)
from apitools.http.status_codes import HTTPStatus, reason_phrase


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_reason(self):
        assert HTTPResponse(status=HTTPStatus.OK).reason == "OK"
        assert HTTPResponse(status=404).reason == "Not Found"
        assert HTTPResponse(status=299).reason == "Unknown"

    def test_set_header_chaining(self):
        """Test method chaining for headers."""
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers == {"X-One": "1", "X-Two": "2"}

    def test_header_lookup_is_case_insensitive(self):
        response = HTTPResponse(headers={"Content-Type": "text/html"})

        assert response.get_header("content-type") == "text/html"
        assert response.has_header("CONTENT-TYPE")
        assert response.get_header("X-Missing", "none") == "none"

    def test_set_header_replaces_other_case(self):
        response = HTTPResponse(headers={"x-frame-options": "SAMEORIGIN"})
        response.set_header("X-Frame-Options", "DENY")

        assert response.headers == {"X-Frame-Options": "DENY"}

    def test_remove_header(self):
        response = HTTPResponse(headers={"X-One": "1"})
        response.remove_header("x-one")

        assert response.headers == {}

    def test_content_type(self):
        response = HTTPResponse(headers={"Content-Type": "Image/PNG; q=1"})

        assert response.content_type == "image/png"
        assert HTTPResponse().content_type == ""

    def test_size_hint(self):
        assert HTTPResponse(body=b"hello").size_hint == 5
        assert HTTPResponse(stream=iter([b"x"])).size_hint == 0
        assert HTTPResponse(stream=iter([b"x"]), headers={"Content-Length": "42"}).size_hint == 42

    def test_set_body_drops_stream(self):
        response = HTTPResponse(stream=iter([b"old"]))
        response.set_body("new")

        assert response.body == b"new"
        assert response.stream is None

    def test_iter_body(self):
        assert list(HTTPResponse(body=b"abc").iter_body()) == [b"abc"]
        assert list(HTTPResponse().iter_body()) == []
        assert list(HTTPResponse(stream=iter([b"a", b"b"])).iter_body()) == [b"a", b"b"]

    def test_buffer_stream(self):
        response = HTTPResponse(stream=iter([b"a", b"b"]))

        assert response.buffer(10) == b"ab"
        assert response.body == b"ab"
        assert response.stream is None

    def test_buffer_limit(self):
        with pytest.raises(PayloadTooLarge):
            HTTPResponse(body=b"x" * 11).buffer(10)
        with pytest.raises(PayloadTooLarge):
            HTTPResponse(stream=iter([b"x" * 6, b"x" * 6])).buffer(10)

    def test_buffer_exact_limit(self):
        assert HTTPResponse(body=b"x" * 10).buffer(10) == b"x" * 10


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_status(self):
        """Test setting status code."""
        response = ResponseBuilder().status(HTTPStatus.CREATED).build()
        assert response.status == HTTPStatus.CREATED

    def test_json_body(self):
        """Test JSON body encoding."""
        data = {"name": "John", "age": 30}
        response = ResponseBuilder().json(data).build()

        assert response.headers["Content-Type"] == "application/json"
        assert response.body == b'{"name":"John","age":30}'

    def test_text_body(self):
        """Test plain text body."""
        text = "Hello, World!"
        response = ResponseBuilder().text(text).build()

        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == text.encode()

    def test_stream(self):
        chunks = iter([b"a"])
        response = ResponseBuilder().stream(chunks).build()

        assert response.stream is chunks
        assert response.body == b""

    def test_method_chaining(self):
        """Test fluent API chaining."""
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("X-Custom", "value")
            .headers({"X-Other": "other"})
            .json({"key": "value"})
            .build())

        assert response.status == HTTPStatus.OK
        assert response.headers["X-Custom"] == "value"
        assert response.headers["X-Other"] == "other"
        assert b'"key"' in response.body


class TestApiErrors:
    """Tests for the ApiError family and the error envelope."""

    def test_error_body(self):
        assert error_body(404, "gone") == {"code": 404, "message": "gone"}

    def test_error_response(self):
        response = error_response(401, "Unauthorized", {"WWW-Authenticate": "Bearer"})

        assert response.status == 401
        assert response.get_header("Content-Type") == "application/json"
        assert response.get_header("WWW-Authenticate") == "Bearer"
        assert json.loads(response.body) == {"code": 401, "message": "Unauthorized"}

    @pytest.mark.parametrize("error_class,status,message", [
        (Unauthorized, 401, "Unauthorized"),
        (RequestTimeout, 408, "Request timeout"),
        (PayloadTooLarge, 413, "Payload too large"),
        (TooManyRequests, 429, "Too many requests"),
        (MethodNotAllowed, 405, "Method not allowed"),
        (ServiceUnavailable, 503, "Service unavailable"),
    ])
    def test_fixed_messages(self, error_class, status, message):
        error = error_class()

        assert error.status == status
        assert error.to_body() == {"code": status, "message": message}

    def test_custom_message(self):
        error = BadRequest("name is required")

        assert error.to_response().status == 400
        assert json.loads(error.to_response().body)["message"] == "name is required"
        assert str(error) == "Bad request: name is required"

    def test_unprocessable(self):
        assert UnprocessableEntity("bad field").to_body() == {"code": 422, "message": "bad field"}

    def test_base_is_500(self):
        assert ApiError().status == 500
        assert NotFound().message == "Not found"

    def test_trace_id_included_when_tracing(self):
        from opentelemetry import trace
        from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

        context = SpanContext(
            trace_id=0x4BF92F3577B34DA6A3CE929D0E0E4736,
            span_id=0x00F067AA0BA902B7,
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        with trace.use_span(NonRecordingSpan(context)):
            body = error_body(500, "boom")

        assert body["trace_id"] == "4bf92f3577b34da6a3ce929d0e0e4736"


class TestConvenienceFunctions:
    """Tests for convenience response functions."""

    def test_ok(self):
        """Test ok() function."""
        response = ok("Hello")
        assert response.status == HTTPStatus.OK
        assert response.body == b"Hello"

        response = ok({"msg": "hello"})
        assert json.loads(response.body) == {"msg": "hello"}

    def test_ok_bytes(self):
        response = ok(b"\x00\x01", content_type="application/octet-stream")

        assert response.body == b"\x00\x01"
        assert response.content_type == "application/octet-stream"

    def test_created(self):
        """Test created() function."""
        response = created({"id": 123}, location="/items/123")
        assert response.status == HTTPStatus.CREATED
        assert response.headers["Location"] == "/items/123"

    def test_no_content(self):
        response = no_content()

        assert response.status == 204
        assert response.body == b""


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        """Test that all statuses have phrases."""
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"
        assert reason_phrase(503) == "Service Unavailable"

    def test_unlisted_codes(self):
        """Codes outside the enum still get a phrase."""
        assert reason_phrase(418) == "Unknown"
        assert reason_phrase(502) == "Unknown"
        assert HTTPStatus.SERVICE_UNAVAILABLE == 503
