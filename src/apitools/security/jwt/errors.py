"""
Token engine and bearer payload errors.

    TokenError
    ├── InvalidAlgorithmError   (also ConfigurationError)
    ├── EncodingKeyError        (also ConfigurationError)
    ├── DecodingKeyError        (also ConfigurationError)
    ├── GenerateError
    ├── ExpiredTokenError
    └── ParseError

    PayloadError
    ├── MissingTokenError
    ├── InvalidTokenError
    └── InvalidHeadersError
"""

from ...errors import ConfigurationError
from ...http.response import ApiError


class TokenError(Exception):
    """Base class for everything TokenEngine raises."""

    def to_api_error(self) -> ApiError:
        return ApiError.from_token_error(self)


class InvalidAlgorithmError(TokenError, ConfigurationError):
    """The configured algorithm name is not in the supported table."""

    def __init__(self, algorithm: str):
        super().__init__(f"Invalid JWT algorithm: {algorithm!r}")
        self.algorithm = algorithm


class EncodingKeyError(TokenError, ConfigurationError):
    """The signing key is missing or does not fit the algorithm."""


class DecodingKeyError(TokenError, ConfigurationError):
    """The verification key is missing or does not fit the algorithm."""


class GenerateError(TokenError):
    """Signing failed (unserializable claims, key rejected by the backend)."""


class ExpiredTokenError(TokenError):
    """Signature is valid but the exp claim is in the past."""

    def __init__(self, message: str = "Expired token"):
        super().__init__(message)


class ParseError(TokenError):
    """Malformed token, bad signature, wrong algorithm or missing exp."""


class PayloadError(Exception):
    """Base class for failures turning request headers into verified claims."""


class MissingTokenError(PayloadError):
    def __init__(self, message: str = "Missing bearer token"):
        super().__init__(message)


class InvalidTokenError(PayloadError):
    """The bearer token was present but failed to parse."""


class InvalidHeadersError(PayloadError):
    def __init__(self, message: str = "Invalid headers"):
        super().__init__(message)
