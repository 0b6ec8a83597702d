"""
Unit tests for the middleware pipeline.
"""

import json

from apitools.http import HTTPRequest, HTTPResponse, NotFound, ok
from apitools.middleware import (
    FunctionMiddleware,
    Middleware,
    MiddlewarePipeline,
    function_middleware,
)


def make_request(method: str = "GET", path: str = "/") -> HTTPRequest:
    return HTTPRequest.create(method, path)


def ok_handler(request: HTTPRequest) -> HTTPResponse:
    return ok("hello")


class Recorder(Middleware):
    """Appends its tag to a shared list before and after calling next."""

    def __init__(self, tag: str, calls: list):
        self.tag = tag
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.tag}:in")
        response = next(request)
        self.calls.append(f"{self.tag}:out")
        return response


class Stop(Middleware):
    """Answers 401 without calling next."""

    def __call__(self, request, next):
        return HTTPResponse(status=401)


class Boom(Middleware):
    def __call__(self, request, next):
        raise RuntimeError("boom")


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_empty_pipeline_calls_handler(self):
        handler = MiddlewarePipeline().wrap(ok_handler)

        assert handler(make_request()).body == b"hello"

    def test_first_added_is_outermost(self):
        """Units see the request in order and the response in reverse."""
        calls = []
        pipeline = MiddlewarePipeline().use(
            Recorder("a", calls), Recorder("b", calls), Recorder("c", calls)
        )

        pipeline.wrap(ok_handler)(make_request())

        assert calls == ["a:in", "b:in", "c:in", "c:out", "b:out", "a:out"]

    def test_short_circuit(self):
        """A unit that does not call next stops the chain; outer units still run."""
        calls = []
        handled = []

        def handler(request):
            handled.append(request)
            return ok()

        pipeline = MiddlewarePipeline().use(Recorder("outer", calls), Stop(), Recorder("inner", calls))
        response = pipeline.wrap(handler)(make_request())

        assert response.status == 401
        assert handled == []
        assert calls == ["outer:in", "outer:out"]

    def test_unit_exception_becomes_500(self):
        """The outer unit gets a 500 response instead of the exception."""
        seen = []

        @function_middleware
        def observe(request, next):
            response = next(request)
            seen.append(response.status)
            return response

        pipeline = MiddlewarePipeline().use(observe, Boom())
        response = pipeline.wrap(ok_handler)(make_request())

        assert response.status == 500
        assert seen == [500]
        assert json.loads(response.body)["code"] == 500

    def test_handler_exception_becomes_500(self):
        def broken(request):
            raise ValueError("bad")

        response = MiddlewarePipeline().wrap(broken)(make_request())

        assert response.status == 500
        assert json.loads(response.body) == {"code": 500, "message": "ValueError: bad"}

    def test_unit_exception_message_carries_cause(self):
        """The cause of an unexpected failure is folded into the 500 message."""
        class Misconfigured(Middleware):
            def __call__(self, request, next):
                raise RuntimeError("metrics backend misconfigured")

        response = MiddlewarePipeline().add(Misconfigured()).wrap(ok_handler)(make_request())

        assert response.status == 500
        assert json.loads(response.body)["message"] == "RuntimeError: metrics backend misconfigured"

    def test_api_error_becomes_its_response(self):
        def missing(request):
            raise NotFound("user 42 does not exist")

        response = MiddlewarePipeline().wrap(missing)(make_request())

        assert response.status == 404
        assert json.loads(response.body) == {"code": 404, "message": "user 42 does not exist"}

    def test_len_and_iter(self):
        a, b = Stop(), Boom()
        pipeline = MiddlewarePipeline().add(a).add(b)

        assert len(pipeline) == 2
        assert list(pipeline) == [a, b]

    def test_units_added_after_wrap_do_not_apply(self):
        pipeline = MiddlewarePipeline()
        handler = pipeline.wrap(ok_handler)
        pipeline.add(Stop())

        assert handler(make_request()).status == 200


class TestFunctionMiddleware:
    """Tests for FunctionMiddleware."""

    def test_adds_header(self):
        def add_header(request, next):
            response = next(request)
            response.set_header("X-Custom", "value")
            return response

        handler = MiddlewarePipeline().add(FunctionMiddleware(add_header)).wrap(ok_handler)

        assert handler(make_request()).get_header("x-custom") == "value"

    def test_name(self):
        def timing(request, next):
            return next(request)

        assert FunctionMiddleware(timing).name == "timing"
        assert FunctionMiddleware(timing, name="clock").name == "clock"
        assert Stop().name == "Stop"
