"""
=============================================================================
APPLICATION
=============================================================================

Router + middleware pipeline, the one object a host server talks to.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   host (WSGI adapter, socket loop, test)                            │
    │        │  HTTPRequest                                                │
    │        ▼                                                             │
    │   Application.handle(request)                                        │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestId → Logging → Metrics → SecurityHeaders → CORS →          │
    │   HttpErrors → TimeLimiter → BasicAuth → Router → handler           │
    │        │                                                             │
    │        ▼  HTTPResponse (never an exception)                          │
    │   host serializes it                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The chain is built on the first request. handle() is safe to call from
many threads at once; the host is expected to run one worker thread per
in-flight request.

=============================================================================
USAGE
=============================================================================

    config = ApiConfig.from_env()
    setup_logging(config.log_level, config.log_format)
    app = Application.from_config(config)

    @app.post("/login")
    def login(request):
        token = app.engine.issue_access_token({"sub": request.json["user"]})
        return ok(token.to_dict())

    @app.get("/me")
    @app.authenticated
    def me(request):
        return ok(request.extensions["claims"])

=============================================================================
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from .config import ApiConfig
from .http import HTTPRequest, HTTPResponse, Router
from .metrics import PrometheusMetrics, metrics_handler
from .middleware import (
    BasicAuthMiddleware,
    BearerAuthMiddleware,
    CORSConfig,
    CORSMiddleware,
    HttpErrorsMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    Middleware,
    MiddlewarePipeline,
    NextHandler,
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
    TimeLimiterMiddleware,
)
from .security.jwt import TokenEngine


logger = logging.getLogger(__name__)


class Application:
    """
    A router wrapped in a middleware pipeline.

        app = Application()
        app.use(RequestIdMiddleware()).use(LoggingMiddleware())

        @app.get("/users/:id")
        def get_user(request):
            return ok({"id": request.path_params["id"]})

        response = app.handle(HTTPRequest.create("GET", "/users/42"))
    """

    def __init__(
        self,
        router: Optional[Router] = None,
        engine: Optional[TokenEngine] = None,
        metrics: Optional[PrometheusMetrics] = None,
    ):
        self._router = router or Router()
        self._middleware = MiddlewarePipeline()
        self._handler: Optional[NextHandler] = None
        self._lock = threading.Lock()
        self.engine = engine
        self.metrics = metrics

    # =========================================================================
    # COMPOSITION
    # =========================================================================

    @classmethod
    def from_config(
        cls,
        config: ApiConfig,
        engine: Optional[TokenEngine] = None,
        metrics: Optional[PrometheusMetrics] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "Application":
        """
        Build the standard stack from ``config``.

        Optional units (metrics, time limiter, basic auth) are added only
        when configured. ``engine`` overrides the one config would build;
        ``metrics`` and ``clock`` are mostly for tests.

        Raises:
            ConfigurationError: invalid config or key material
        """
        config.validate()

        app = cls(engine=engine or config.token_engine())

        app.use(RequestIdMiddleware(config.request_id_header))
        app.use(LoggingMiddleware(config.log_format, config.request_id_header))

        if config.metrics_enabled:
            app.metrics = metrics or PrometheusMetrics()
            app.use(MetricsMiddleware(
                config.service_name,
                app.metrics,
                disk_mount_points=config.disk_mount_points,
                cpu_interval=config.cpu_sample_interval,
            ))
            app.router.add_route("/metrics", metrics_handler(app.metrics), "GET")

        app.use(SecurityHeadersMiddleware())
        app.use(CORSMiddleware(CORSConfig(
            allow_origin=config.cors_allow_origin,
            allow_methods=config.cors_allow_methods,
            allow_headers=config.cors_allow_headers,
        )))
        app.use(HttpErrorsMiddleware(config.body_max_size))

        time_slots = config.parsed_time_slots()
        if time_slots:
            app.use(TimeLimiterMiddleware(time_slots, clock or datetime.now))

        if config.basic_auth_enabled:
            app.use(BasicAuthMiddleware(config.basic_auth_username, config.basic_auth_password))

        logger.info(
            f"Application ready: {len(app._middleware)} middleware, "
            f"jwt={'on' if app.engine else 'off'}, metrics={'on' if app.metrics else 'off'}"
        )
        return app

    def use(self, middleware: Middleware) -> "Application":
        """Append a unit to the pipeline. Returns self for chaining."""
        with self._lock:
            self._middleware.add(middleware)
            self._handler = None
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def middleware(self) -> MiddlewarePipeline:
        return self._middleware

    def authenticated(self, handler: NextHandler, payload_type: Optional[Callable[..., Any]] = None) -> NextHandler:
        """
        Wrap one handler with BearerAuthMiddleware using this app's engine.

        Verified claims are in request.extensions["claims"].
        """
        if self.engine is None:
            raise RuntimeError("No token engine configured; pass engine= or set JWT keys")
        return MiddlewarePipeline().add(BearerAuthMiddleware(self.engine, payload_type)).wrap(handler)

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def route(self, path: str, method: Optional[str] = None):
        return self._router.route(path, method)

    def get(self, path: str):
        return self._router.get(path)

    def post(self, path: str):
        return self._router.post(path)

    def put(self, path: str):
        return self._router.put(path)

    def delete(self, path: str):
        return self._router.delete(path)

    def patch(self, path: str):
        return self._router.patch(path)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def build(self) -> NextHandler:
        """Build (or return the already built) handler chain."""
        handler = self._handler
        if handler is None:
            with self._lock:
                if self._handler is None:
                    self._handler = self._middleware.wrap(self._router.handle)
                handler = self._handler
        return handler

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Run ``request`` through the pipeline and router."""
        return self.build()(request)

    __call__ = handle
