"""
=============================================================================
MIDDLEWARE BASE CLASSES
=============================================================================

One capability, implemented by every unit:

    def __call__(self, request, next) -> HTTPResponse

A unit may act before calling ``next`` (check credentials, stamp a request
id), after it (add headers, log, count), or not call it at all and
answer directly (401, 503, CORS preflight). Units never know about each
other; the pipeline decides the order.

=============================================================================
THE ONION
=============================================================================

    pipeline.use(RequestIdMiddleware(),     # first added = outermost
                 LoggingMiddleware(),
                 BasicAuthMiddleware(...))  # last added = innermost

    ┌─────────────────────────────────────────────────────────────────────┐
    │  RequestId                                                           │
    │  ┌───────────────────────────────────────────────────────────────┐  │
    │  │  Logging                                                       │  │
    │  │  ┌─────────────────────────────────────────────────────────┐  │  │
    │  │  │  BasicAuth ──── 401 ──┐  (short-circuit: handler never  │  │  │
    │  │  │  ┌─────────────────┐  │   runs, Logging still sees the  │  │  │
    │  │  │  │     HANDLER     │  │   401 on the way out)            │  │  │
    │  │  │  └─────────────────┘  │                                   │  │  │
    │  │  └───────────────────────┼──────────────────────────────────┘  │  │
    │  └──────────────────────────┼─────────────────────────────────────┘  │
    └─────────────────────────────┼───────────────────────────────────────┘
                                  ▼
                               client

=============================================================================
NOTHING ESCAPES A LAYER
=============================================================================

Every wrapped layer catches what its unit lets escape:

    ApiError (NotFound, PayloadTooLarge, ...)  → err.to_response()
    any other Exception                        → 500 envelope carrying
                                                 "<Type>: <message>", logged
                                                 with traceback

So a unit always gets a response back from ``next``, and the logging and
metrics units still record requests whose handler blew up.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..http.request import HTTPRequest
from ..http.response import ApiError, HTTPResponse, InternalServerError


logger = logging.getLogger(__name__)


# The next unit, or the terminal handler. Call it to continue the chain.
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware units.

        class ServerHeader(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("Server", "apitools")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process ``request``.

        Call ``next(request)`` to continue inward, or return a response
        directly to short-circuit.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


def guarded(handler: NextHandler, name: str = "handler") -> NextHandler:
    """
    Wrap ``handler`` so it always returns a response.

    ApiErrors become their normalized response; anything else is logged
    and becomes a 500 whose message names the exception.
    """
    def call(request: HTTPRequest) -> HTTPResponse:
        try:
            return handler(request)
        except ApiError as e:
            return e.to_response()
        except Exception as e:
            logger.exception(f"Unhandled error in {name} for {request.method} {request.path}")
            return InternalServerError(f"{type(e).__name__}: {e}").to_response()

    return call


class MiddlewarePipeline:
    """
    An ordered chain of middleware units around a terminal handler.

    The first unit added is the outermost: it sees the request first and
    the response last.

        pipeline = MiddlewarePipeline()
        pipeline.add(RequestIdMiddleware()).add(LoggingMiddleware())

        handler = pipeline.wrap(router.handle)
        response = handler(request)

    The order is fixed when wrap() runs; units added afterwards only
    affect handlers wrapped later.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a unit (innermost so far). Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Append several units in order."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around ``handler``.

        Given [A, B, C] the result calls A → B → C → handler. Units are
        wrapped in reverse so the first one added ends up outermost.
        """
        current = guarded(handler)

        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)

        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return guarded(wrapped, middleware.name)

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)


class FunctionMiddleware(Middleware):
    """
    A plain function used as a unit.

        def add_header(request, next):
            response = next(request)
            response.set_header("X-Custom", "value")
            return response

        pipeline.add(FunctionMiddleware(add_header))
    """

    def __init__(
        self,
        func: Callable[[HTTPRequest, NextHandler], HTTPResponse],
        name: Optional[str] = None
    ):
        self._func = func
        self._name = name or func.__name__

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        return self._func(request, next)

    @property
    def name(self) -> str:
        return self._name


def function_middleware(func: Callable[[HTTPRequest, NextHandler], HTTPResponse]) -> FunctionMiddleware:
    """
    Decorator form of FunctionMiddleware.

        @function_middleware
        def timing(request, next):
            ...

        pipeline.add(timing)
    """
    return FunctionMiddleware(func)
