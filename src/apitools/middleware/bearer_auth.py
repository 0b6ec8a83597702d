"""
JWT bearer authentication.

Verifies ``Authorization: Bearer <jwt>`` with a TokenEngine and hands the
claims to the handler:

    @router.get("/me")
    def me(request):
        return ok({"sub": request.extensions["claims"]["sub"]})

    no / malformed bearer header   → 401 "Missing bearer token"
    bad signature, garbage, no exp → 401 "Invalid token"
    past exp                       → 401 "Expired token"
"""

from typing import Any, Callable, Optional
import logging

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, Unauthorized
from ..security.jwt import AccessToken, ExpiredTokenError, ParseError, TokenEngine, TokenError


logger = logging.getLogger(__name__)

CLAIMS_KEY = "claims"


class BearerAuthMiddleware(Middleware):
    """
    Require a valid JWT and store its claims in request.extensions.

    Args:
        engine:       engine with a decoding key
        payload_type: optional claims class, see TokenEngine.parse()
    """

    def __init__(self, engine: TokenEngine, payload_type: Optional[Callable[..., Any]] = None):
        self.engine = engine
        self.payload_type = payload_type

    def _challenge(self, message: str) -> HTTPResponse:
        return Unauthorized(message).to_response({"WWW-Authenticate": "Bearer"})

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        token = AccessToken.from_headers(request.headers)
        if token is None:
            return self._challenge("Missing bearer token")

        try:
            claims = self.engine.parse(token, self.payload_type)
        except ExpiredTokenError:
            return self._challenge("Expired token")
        except ParseError as e:
            logger.debug(f"Rejected bearer token for {request.path}: {e}")
            return self._challenge("Invalid token")
        except TokenError as e:
            logger.error(f"Token engine failure for {request.path}: {e}")
            return e.to_api_error().to_response()

        request.extensions[CLAIMS_KEY] = claims
        return next(request)
