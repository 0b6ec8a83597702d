"""
JWT issuing and validation.

    engine = TokenEngine.init("ES256", private_key=pem, public_key=pub)
    token = engine.issue_access_token({"sub": "user-1"})
    claims = engine.parse(token)
"""

from .access_token import AccessToken, extract_bearer_token, peek_expiry
from .algorithms import ALGORITHMS, DEFAULT_ALGORITHM, AlgorithmSpec, KeyMaterial, get_algorithm
from .engine import DEFAULT_ACCESS_LIFETIME, DEFAULT_REFRESH_LIFETIME, TokenEngine
from .errors import (
    DecodingKeyError,
    EncodingKeyError,
    ExpiredTokenError,
    GenerateError,
    InvalidAlgorithmError,
    InvalidHeadersError,
    InvalidTokenError,
    MissingTokenError,
    ParseError,
    PayloadError,
    TokenError,
)
from .payload import payload_from_headers

__all__ = [
    "AccessToken",
    "extract_bearer_token",
    "peek_expiry",
    "ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "AlgorithmSpec",
    "KeyMaterial",
    "get_algorithm",
    "DEFAULT_ACCESS_LIFETIME",
    "DEFAULT_REFRESH_LIFETIME",
    "TokenEngine",
    "TokenError",
    "InvalidAlgorithmError",
    "EncodingKeyError",
    "DecodingKeyError",
    "GenerateError",
    "ExpiredTokenError",
    "ParseError",
    "PayloadError",
    "MissingTokenError",
    "InvalidTokenError",
    "InvalidHeadersError",
    "payload_from_headers",
]
