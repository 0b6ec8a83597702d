"""
=============================================================================
API CONFIGURATION
=============================================================================

Every setting the standard middleware stack and the token engine need,
in one dataclass, loadable from the environment.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    ┌──────────────────────────────┬───────────────────┬──────────────────┐
    │ Variable                     │ Field             │ Default          │
    ├──────────────────────────────┼───────────────────┼──────────────────┤
    │ API_LOG_LEVEL                │ log_level         │ INFO             │
    │ API_LOG_FORMAT               │ log_format        │ text             │
    │ API_SERVICE_NAME             │ service_name      │ api              │
    │ API_JWT_ALGORITHM            │ jwt_algorithm     │ HS512            │
    │ API_JWT_ACCESS_LIFETIME      │ (minutes)         │ 15               │
    │ API_JWT_REFRESH_LIFETIME     │ (days)            │ 7                │
    │ API_JWT_SECRET               │ jwt_secret        │ -                │
    │ API_JWT_PRIVATE_KEY[_FILE]   │ jwt_private_key   │ -                │
    │ API_JWT_PUBLIC_KEY[_FILE]    │ jwt_public_key    │ -                │
    │ API_BASIC_AUTH_USERNAME      │ basic_auth_...    │ - (disabled)     │
    │ API_BASIC_AUTH_PASSWORD      │                   │                  │
    │ API_TIME_SLOTS               │ time_slots        │ "" (disabled)    │
    │ API_CORS_ALLOW_ORIGIN        │ cors_allow_origin │ *                │
    │ API_CORS_ALLOW_METHODS       │ (comma list)      │ GET,POST,...     │
    │ API_CORS_ALLOW_HEADERS       │ (comma list)      │ Content-Type,... │
    │ API_BODY_MAX_SIZE            │ body_max_size     │ 1048576          │
    │ API_METRICS_ENABLED          │ metrics_enabled   │ true             │
    │ API_DISK_MOUNT_POINTS        │ (comma list)      │ /                │
    │ API_CPU_SAMPLE_INTERVAL      │ (seconds)         │ 0.2              │
    └──────────────────────────────┴───────────────────┴──────────────────┘

    API_JWT_SECRET=$(openssl rand -hex 64) API_TIME_SLOTS=02:00-03:00 \\
        python -m myservice

Validate at startup with validate(); a bad value raises ConfigError
naming the variable's field, and the service should refuse to start.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Mapping, Optional

from .errors import ConfigError
from .middleware.time_limiter import TimeSlots, TimeSlotsError
from .security.jwt import ALGORITHMS, DEFAULT_ALGORITHM, TokenEngine


ENV_PREFIX = "API_"

LOG_FORMATS = ("text", "json")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _read_file(setting: str, path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise ConfigError(setting, f"cannot read {path}: {e}") from e


@dataclass
class ApiConfig:
    """
    Configuration for an Application and its standard middleware stack.

    Optional features are off until configured: basic auth needs both a
    username and a password, the time limiter needs slots, the token
    engine needs key material.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """'text' for humans, 'json' for log aggregators."""

    service_name: str = "api"
    """Value of the ``service`` label on every metric."""

    # ─────────────────────────────────────────────────────────────────────
    # JWT
    # ─────────────────────────────────────────────────────────────────────

    jwt_algorithm: str = DEFAULT_ALGORITHM
    jwt_access_lifetime: timedelta = timedelta(minutes=15)
    jwt_refresh_lifetime: timedelta = timedelta(days=7)
    jwt_secret: Optional[str] = None
    """Shared secret for HS256/384/512."""

    jwt_private_key: Optional[str] = None
    jwt_public_key: Optional[str] = None
    """PEM keys for every other algorithm."""

    # ─────────────────────────────────────────────────────────────────────
    # MIDDLEWARE
    # ─────────────────────────────────────────────────────────────────────

    basic_auth_username: Optional[str] = None
    basic_auth_password: Optional[str] = None

    time_slots: str = ""
    """Denied windows, "HH:MM-HH:MM,HH:MM-HH:MM"."""

    cors_allow_origin: str = "*"
    cors_allow_methods: List[str] = field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
    )
    cors_allow_headers: List[str] = field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Request-Id"]
    )

    body_max_size: int = 1024 * 1024
    """Largest response body HttpErrorsMiddleware will buffer."""

    request_id_header: str = "x-request-id"

    # ─────────────────────────────────────────────────────────────────────
    # METRICS
    # ─────────────────────────────────────────────────────────────────────

    metrics_enabled: bool = True
    disk_mount_points: List[str] = field(default_factory=lambda: ["/"])
    cpu_sample_interval: float = 0.2
    """Seconds between the two CPU readings taken on every request."""

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ApiConfig":
        """
        Build a config from API_* variables (``os.environ`` by default).

        ``*_FILE`` variants read PEM keys from files and win over the
        inline variables.

        Raises:
            ConfigError: a value cannot be converted or a key file cannot
                         be read
        """
        env = os.environ if env is None else env
        defaults = cls()

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            return env.get(ENV_PREFIX + name, default)

        def get_int(name: str, default: int) -> int:
            raw = get(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ConfigError(ENV_PREFIX + name, f"expected an integer, got {raw!r}") from None

        def get_float(name: str, default: float) -> float:
            raw = get(name)
            if raw is None:
                return default
            try:
                return float(raw)
            except ValueError:
                raise ConfigError(ENV_PREFIX + name, f"expected a number, got {raw!r}") from None

        def get_bool(name: str, default: bool) -> bool:
            raw = get(name)
            if raw is None:
                return default
            if raw.strip().lower() in _TRUE:
                return True
            if raw.strip().lower() in _FALSE:
                return False
            raise ConfigError(ENV_PREFIX + name, f"expected true/false, got {raw!r}")

        def get_list(name: str, default: List[str]) -> List[str]:
            raw = get(name)
            return list(default) if raw is None else _split_list(raw)

        def get_key(name: str) -> Optional[str]:
            path = get(name + "_FILE")
            if path:
                return _read_file(ENV_PREFIX + name + "_FILE", path)
            return get(name)

        return cls(
            log_level=get("LOG_LEVEL", defaults.log_level).upper(),
            log_format=get("LOG_FORMAT", defaults.log_format).lower(),
            service_name=get("SERVICE_NAME", defaults.service_name),
            jwt_algorithm=get("JWT_ALGORITHM", defaults.jwt_algorithm).strip(),
            jwt_access_lifetime=timedelta(minutes=get_int("JWT_ACCESS_LIFETIME", 15)),
            jwt_refresh_lifetime=timedelta(days=get_int("JWT_REFRESH_LIFETIME", 7)),
            jwt_secret=get("JWT_SECRET"),
            jwt_private_key=get_key("JWT_PRIVATE_KEY"),
            jwt_public_key=get_key("JWT_PUBLIC_KEY"),
            basic_auth_username=get("BASIC_AUTH_USERNAME"),
            basic_auth_password=get("BASIC_AUTH_PASSWORD"),
            time_slots=get("TIME_SLOTS", ""),
            cors_allow_origin=get("CORS_ALLOW_ORIGIN", defaults.cors_allow_origin),
            cors_allow_methods=get_list("CORS_ALLOW_METHODS", defaults.cors_allow_methods),
            cors_allow_headers=get_list("CORS_ALLOW_HEADERS", defaults.cors_allow_headers),
            body_max_size=get_int("BODY_MAX_SIZE", defaults.body_max_size),
            request_id_header=get("REQUEST_ID_HEADER", defaults.request_id_header),
            metrics_enabled=get_bool("METRICS_ENABLED", defaults.metrics_enabled),
            disk_mount_points=get_list("DISK_MOUNT_POINTS", defaults.disk_mount_points),
            cpu_sample_interval=get_float("CPU_SAMPLE_INTERVAL", defaults.cpu_sample_interval),
        )

    # =========================================================================
    # DERIVED SETTINGS
    # =========================================================================

    @property
    def basic_auth_enabled(self) -> bool:
        return bool(self.basic_auth_username) and self.basic_auth_password is not None

    @property
    def has_jwt_keys(self) -> bool:
        return any(k for k in (self.jwt_secret, self.jwt_private_key, self.jwt_public_key))

    def parsed_time_slots(self) -> TimeSlots:
        try:
            return TimeSlots.parse(self.time_slots)
        except TimeSlotsError as e:
            raise ConfigError("time_slots", str(e)) from e

    def check_jwt_keys(self) -> None:
        """
        Check the jwt_* key material fits the algorithm family.

        HS* takes only jwt_secret; every other algorithm takes only PEM
        keys. No key material at all is fine: the engine is off.
        """
        if not self.has_jwt_keys:
            return
        if self.jwt_algorithm not in ALGORITHMS:
            raise ConfigError("jwt_algorithm", f"unsupported algorithm {self.jwt_algorithm!r}")

        if ALGORITHMS[self.jwt_algorithm].is_symmetric:
            if not self.jwt_secret:
                raise ConfigError("jwt_secret", f"{self.jwt_algorithm} needs a shared secret")
            if self.jwt_private_key or self.jwt_public_key:
                raise ConfigError("jwt_private_key", f"{self.jwt_algorithm} takes a secret, not PEM keys")
        elif self.jwt_secret:
            raise ConfigError("jwt_secret", f"{self.jwt_algorithm} takes PEM keys, not a secret")

    def token_engine(self) -> Optional[TokenEngine]:
        """
        Build the TokenEngine described by the jwt_* fields.

        None when no key material is configured. With a private key only
        the engine issues but cannot validate, and the other way round.
        """
        if not self.has_jwt_keys:
            return None

        self.check_jwt_keys()
        symmetric = ALGORITHMS[self.jwt_algorithm].is_symmetric
        return TokenEngine.init(
            algorithm=self.jwt_algorithm,
            access_lifetime=self.jwt_access_lifetime,
            refresh_lifetime=self.jwt_refresh_lifetime,
            secret=self.jwt_secret,
            private_key=self.jwt_private_key,
            public_key=self.jwt_public_key,
            issuing=symmetric or self.jwt_private_key is not None,
            validating=symmetric or self.jwt_public_key is not None,
        )

    def validate(self) -> None:
        """
        Check every setting; fail fast before anything is built.

        Raises:
            ConfigError: the first invalid setting found
        """
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError("log_level", f"unknown level {self.log_level!r}")

        if self.log_format not in LOG_FORMATS:
            raise ConfigError("log_format", f"must be one of {', '.join(LOG_FORMATS)}")

        if not self.service_name:
            raise ConfigError("service_name", "must not be empty")

        if self.jwt_algorithm not in ALGORITHMS:
            raise ConfigError("jwt_algorithm", f"unsupported algorithm {self.jwt_algorithm!r}")

        if self.jwt_access_lifetime <= timedelta(0):
            raise ConfigError("jwt_access_lifetime", "must be positive")

        if self.jwt_refresh_lifetime <= timedelta(0):
            raise ConfigError("jwt_refresh_lifetime", "must be positive")

        self.check_jwt_keys()

        if bool(self.basic_auth_username) != (self.basic_auth_password is not None):
            raise ConfigError("basic_auth_username", "username and password must be set together")

        self.parsed_time_slots()

        if self.body_max_size <= 0:
            raise ConfigError("body_max_size", "must be positive")

        if self.cpu_sample_interval < 0:
            raise ConfigError("cpu_sample_interval", "must not be negative")

        if not self.request_id_header.strip():
            raise ConfigError("request_id_header", "must not be empty")
