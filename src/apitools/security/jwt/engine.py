"""
=============================================================================
TOKEN ENGINE
=============================================================================

Issues and validates signed JWTs for one configured algorithm.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   engine = TokenEngine.init("HS512", secret=os.environ["SECRET"])   │
    │                                                                      │
    │   token  = engine.issue_access_token({"sub": "user-1"})             │
    │            │                                                         │
    │            ▼                                                         │
    │   claims = engine.parse(token)      # {"sub": ..., "exp": ...}      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
EXPIRY
=============================================================================

parse() requires an ``exp`` claim and rejects tokens past it, with zero
leeway unless configured otherwise. An expired token raises
ExpiredTokenError; every other failure (bad signature, wrong algorithm,
malformed, no exp) raises ParseError, so callers can tell "log in again"
apart from "this token was never valid".

generate() signs exactly the claims it is given. Use issue_access_token()
/ issue_refresh_token() to have iat/nbf/exp filled in from the configured
lifetimes.

=============================================================================
THREAD SAFETY
=============================================================================

One engine is shared by every request thread. Keys live in immutable
KeyMaterial objects; a request takes a local reference to the current one,
and set_encoding_key()/set_decoding_key() build the replacement first and
swap the reference under a lock. A request therefore signs or verifies
with the old key or the new key, never a mix of the two.

=============================================================================
"""

from dataclasses import asdict, is_dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union
import logging
import threading

import jwt

from .access_token import AccessToken
from .algorithms import DEFAULT_ALGORITHM, KeyInput, KeyMaterial, get_algorithm, required_inputs
from ...errors import ConfigurationError
from .errors import (
    DecodingKeyError,
    EncodingKeyError,
    ExpiredTokenError,
    GenerateError,
    ParseError,
)


logger = logging.getLogger(__name__)

DEFAULT_ACCESS_LIFETIME = timedelta(minutes=15)
DEFAULT_REFRESH_LIFETIME = timedelta(days=7)


def _claims_from(payload: Any) -> Dict[str, Any]:
    if is_dataclass(payload) and not isinstance(payload, type):
        return asdict(payload)
    if isinstance(payload, Mapping):
        return dict(payload)
    raise GenerateError(f"Payload must be a mapping or a dataclass, got {type(payload).__name__}")


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class TokenEngine:
    """
    JWT issuer/validator bound to a single algorithm.

    Prefer TokenEngine.init() over the constructor: it derives the key
    material from raw configuration input and checks that every needed
    key is present.
    """

    def __init__(
        self,
        algorithm: str = DEFAULT_ALGORITHM,
        access_lifetime: timedelta = DEFAULT_ACCESS_LIFETIME,
        refresh_lifetime: timedelta = DEFAULT_REFRESH_LIFETIME,
        encoding_key: Optional[KeyMaterial] = None,
        decoding_key: Optional[KeyMaterial] = None,
        leeway: timedelta = timedelta(0),
    ):
        self._algorithm = get_algorithm(algorithm).name
        self._access_lifetime = access_lifetime
        self._refresh_lifetime = refresh_lifetime
        self._encoding_key = encoding_key
        self._decoding_key = decoding_key
        self._leeway = leeway
        self._lock = threading.Lock()

    @classmethod
    def init(
        cls,
        algorithm: str = DEFAULT_ALGORITHM,
        access_lifetime: timedelta = DEFAULT_ACCESS_LIFETIME,
        refresh_lifetime: timedelta = DEFAULT_REFRESH_LIFETIME,
        secret: Optional[KeyInput] = None,
        private_key: Optional[KeyInput] = None,
        public_key: Optional[KeyInput] = None,
        issuing: bool = True,
        validating: bool = True,
        leeway: timedelta = timedelta(0),
    ) -> "TokenEngine":
        """
        Build an engine from configuration input.

        HS* algorithms take ``secret`` for both directions. Every other
        algorithm takes a PEM ``private_key`` to issue and a PEM
        ``public_key`` to validate. Turn off a role with issuing=False or
        validating=False when this service only does the other half.

        Raises:
            InvalidAlgorithmError: unknown algorithm name
            EncodingKeyError:      signing key missing or wrong shape
            DecodingKeyError:      verification key missing or wrong shape
            ConfigurationError:    both roles turned off
        """
        algorithm = get_algorithm(algorithm).name
        if not issuing and not validating:
            raise ConfigurationError(f"{algorithm} engine needs at least one of issuing or validating")

        encoding_input, decoding_input = required_inputs(algorithm)
        inputs = {"secret": secret, "private_key": private_key, "public_key": public_key}

        encoding_key = None
        if issuing:
            raw = inputs[encoding_input]
            if raw is None:
                raise EncodingKeyError(f"{algorithm} needs {encoding_input} to issue tokens")
            encoding_key = KeyMaterial.for_encoding(algorithm, raw)

        decoding_key = None
        if validating:
            raw = inputs[decoding_input]
            if raw is None:
                raise DecodingKeyError(f"{algorithm} needs {decoding_input} to validate tokens")
            decoding_key = KeyMaterial.for_decoding(algorithm, raw)

        return cls(
            algorithm=algorithm,
            access_lifetime=access_lifetime,
            refresh_lifetime=refresh_lifetime,
            encoding_key=encoding_key,
            decoding_key=decoding_key,
            leeway=leeway,
        )

    def __repr__(self) -> str:
        return (
            f"TokenEngine(algorithm={self._algorithm!r}, "
            f"access_lifetime={self._access_lifetime!r}, "
            f"refresh_lifetime={self._refresh_lifetime!r})"
        )

    # =========================================================================
    # SETTINGS
    # =========================================================================

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def access_lifetime(self) -> timedelta:
        return self._access_lifetime

    @access_lifetime.setter
    def access_lifetime(self, value: timedelta) -> None:
        self._access_lifetime = value

    @property
    def refresh_lifetime(self) -> timedelta:
        return self._refresh_lifetime

    @refresh_lifetime.setter
    def refresh_lifetime(self, value: timedelta) -> None:
        self._refresh_lifetime = value

    @property
    def leeway(self) -> timedelta:
        return self._leeway

    @leeway.setter
    def leeway(self, value: timedelta) -> None:
        self._leeway = value

    def set_encoding_key(self, raw: KeyInput) -> None:
        """Replace the signing key. The algorithm stays the same."""
        material = KeyMaterial.for_encoding(self._algorithm, raw)
        with self._lock:
            self._encoding_key = material
        logger.info(f"JWT encoding key rotated ({self._algorithm})")

    def set_decoding_key(self, raw: KeyInput) -> None:
        """Replace the verification key. The algorithm stays the same."""
        material = KeyMaterial.for_decoding(self._algorithm, raw)
        with self._lock:
            self._decoding_key = material
        logger.info(f"JWT decoding key rotated ({self._algorithm})")

    # =========================================================================
    # ISSUING
    # =========================================================================

    def generate(self, payload: Any, expires_at: datetime) -> AccessToken:
        """
        Sign ``payload`` and wrap it with ``expires_at``.

        ``payload`` is a mapping or a dataclass instance and is signed as
        given; put ``exp`` in it yourself or use issue_access_token().

        Raises:
            EncodingKeyError: the engine was built without a signing key
            GenerateError:    the claims could not be serialized or signed
        """
        key = self._encoding_key
        if key is None:
            raise EncodingKeyError(f"No encoding key configured for {self._algorithm}")

        claims = _claims_from(payload)
        try:
            token = jwt.encode(claims, key.key, algorithm=key.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise GenerateError(f"Failed to sign token: {e}") from e

        return AccessToken(token=token, expired_at=_as_utc(expires_at))

    def _issue(self, claims: Any, lifetime: timedelta, now: Optional[datetime]) -> AccessToken:
        issued_at = _as_utc(now or datetime.now(timezone.utc))
        expires_at = issued_at + lifetime
        timed_claims = _claims_from(claims)
        timed_claims.update(
            iat=int(issued_at.timestamp()),
            nbf=int(issued_at.timestamp()),
            exp=int(expires_at.timestamp()),
        )
        # expired_at mirrors the signed exp, which has whole-second precision
        return self.generate(timed_claims, datetime.fromtimestamp(timed_claims["exp"], timezone.utc))

    def issue_access_token(self, claims: Any, now: Optional[datetime] = None) -> AccessToken:
        """Sign ``claims`` with iat/nbf set to now and exp after access_lifetime."""
        return self._issue(claims, self._access_lifetime, now)

    def issue_refresh_token(self, claims: Any, now: Optional[datetime] = None) -> AccessToken:
        """Like issue_access_token(), using refresh_lifetime."""
        return self._issue(claims, self._refresh_lifetime, now)

    # =========================================================================
    # VALIDATING
    # =========================================================================

    def parse(
        self,
        access_token: Union[AccessToken, str],
        payload_type: Optional[Callable[..., Any]] = None,
    ) -> Any:
        """
        Verify a token and return its claims.

        Only the configured algorithm is accepted, whatever the token
        header says. With ``payload_type`` the claims are passed to it as
        keyword arguments and its result is returned.
        Claim value types (``sub``, ``jti``) are not checked, so claims
        come back exactly as they were signed.

        Raises:
            DecodingKeyError:  the engine was built without a verification key
            ExpiredTokenError: signature valid, exp in the past
            ParseError:        anything else
        """
        key = self._decoding_key
        if key is None:
            raise DecodingKeyError(f"No decoding key configured for {self._algorithm}")

        token = access_token.token if isinstance(access_token, AccessToken) else access_token

        try:
            claims = jwt.decode(
                token,
                key.key,
                algorithms=[key.algorithm],
                options={"require": ["exp"], "verify_sub": False, "verify_jti": False},
                leeway=self._leeway,
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except jwt.PyJWTError as e:
            raise ParseError(f"Invalid token: {e}") from e

        if payload_type is None:
            return claims
        try:
            return payload_type(**claims)
        except TypeError as e:
            raise ParseError(f"Claims do not match {getattr(payload_type, '__name__', payload_type)}: {e}") from e
