"""
Access token value and bearer extraction.

An AccessToken is what TokenEngine.generate() hands back and what
from_headers() pulls out of ``Authorization: Bearer <token>``. Holding
one says nothing about validity: only TokenEngine.parse() verifies the
signature and the expiry.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import jwt


BEARER = "Bearer"


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def peek_expiry(token: str) -> Optional[datetime]:
    """
    Read the exp claim WITHOUT verifying the signature.

    Informational only; returns None when the token is not a readable JWT
    or carries no numeric exp.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(exp, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


@dataclass(frozen=True)
class AccessToken:
    """
    A signed token and when it expires.

    Attributes:
        token:      the compact JWS string
        expired_at: UTC expiry. Exact for tokens this service issued; for
                    extracted tokens it is read from the unverified exp
                    claim, or the extraction time when there is none.
    """

    token: str
    expired_at: datetime

    def __str__(self) -> str:
        return self.token

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form for login/refresh responses."""
        return {"access_token": self.token, "expired_at": self.expired_at.isoformat()}

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional["AccessToken"]:
        """
        Extract the bearer token from an Authorization header.

            "Bearer abc.def.ghi"   → AccessToken(token="abc.def.ghi", ...)
            "Basic dXNlcjpwYXNz"   → None
            (no header)            → None
        """
        value = _header(headers, "Authorization")
        if value is None:
            return None

        _, marker, remainder = value.partition(BEARER)
        token = remainder.strip()
        if not marker or not token:
            return None

        expired_at = peek_expiry(token) or datetime.now(timezone.utc)
        return cls(token=token, expired_at=expired_at)


extract_bearer_token = AccessToken.from_headers
