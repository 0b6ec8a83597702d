"""
Verified claims straight from request headers.

    claims = payload_from_headers(request.headers, engine)

Extraction and verification in one call, for handlers that authenticate
themselves instead of sitting behind BearerAuthMiddleware.
"""

from typing import Any, Callable, Mapping, Optional

from .access_token import AccessToken
from .engine import TokenEngine
from .errors import InvalidHeadersError, InvalidTokenError, MissingTokenError, ParseError


def payload_from_headers(
    headers: Mapping[str, str],
    engine: TokenEngine,
    payload_type: Optional[Callable[..., Any]] = None,
) -> Any:
    """
    Extract the bearer token from ``headers`` and return its verified claims.

    Raises:
        InvalidHeadersError: ``headers`` is not a header mapping
        MissingTokenError:   no usable ``Authorization: Bearer`` header
        InvalidTokenError:   the token failed verification
        ExpiredTokenError:   the token is valid but expired (not wrapped)
    """
    if not isinstance(headers, Mapping):
        raise InvalidHeadersError()

    token = AccessToken.from_headers(headers)
    if token is None:
        raise MissingTokenError()

    try:
        return engine.parse(token, payload_type)
    except ParseError as e:
        raise InvalidTokenError(str(e)) from e
