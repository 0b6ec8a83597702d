"""
=============================================================================
APITOOLS
=============================================================================

Reusable building blocks for HTTP API services:

    - a middleware pipeline and the units that go in it (request ids,
      access logging, Prometheus metrics, security headers, CORS, error
      normalization, time-of-day blocking, Basic and Bearer auth)
    - a JWT engine for HMAC, EC, RSA, RSA-PSS and EdDSA tokens
    - environment-driven configuration and logging setup

=============================================================================
PACKAGE LAYOUT
=============================================================================

    apitools/
    ├── app.py              # Application: router + pipeline
    ├── config.py           # ApiConfig (API_* environment variables)
    ├── errors.py           # ConfigurationError, ConfigError
    ├── logging_setup.py    # setup_logging, JsonFormatter
    ├── tracing.py          # active OpenTelemetry trace id
    ├── http/               # HTTPRequest, HTTPResponse, ApiError, Router
    ├── middleware/         # the units and MiddlewarePipeline
    ├── metrics/            # PrometheusMetrics sink, psutil sampling
    └── security/jwt/       # TokenEngine, AccessToken, algorithm table

=============================================================================
QUICK START
=============================================================================

    from apitools import Application, ApiConfig, setup_logging
    from apitools.http import HTTPRequest, ok

    config = ApiConfig.from_env()
    setup_logging(config.log_level, config.log_format)
    app = Application.from_config(config)

    @app.get("/health")
    def health(request):
        return ok({"status": "ok"})

    response = app.handle(HTTPRequest.create("GET", "/health"))

=============================================================================
"""

__version__ = "1.0.0"

from .app import Application
from .config import ApiConfig
from .errors import ConfigError, ConfigurationError
from .logging_setup import setup_logging

__all__ = [
    "Application",
    "ApiConfig",
    "ConfigError",
    "ConfigurationError",
    "setup_logging",
    "__version__",
]
