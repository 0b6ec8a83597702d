"""
=============================================================================
ALGORITHM TABLE & KEY MATERIAL
=============================================================================

Which key each JWS algorithm needs, and how to turn configuration input
into it.

    ┌──────────────────────┬──────────┬────────────────────────────────────┐
    │ Algorithm            │ Family   │ Key input                          │
    ├──────────────────────┼──────────┼────────────────────────────────────┤
    │ HS256 HS384 HS512    │ HMAC     │ raw secret, same both ways         │
    │ ES256 ES384          │ EC       │ PEM EC private / public key        │
    │ RS256 RS384 RS512    │ RSA      │ PEM RSA private / public key       │
    │ PS256 PS384 PS512    │ RSA-PSS  │ PEM RSA private / public key       │
    │ EdDSA                │ EdDSA    │ PEM Ed25519 private / public key   │
    └──────────────────────┴──────────┴────────────────────────────────────┘

Adding an algorithm means adding one AlgorithmSpec to ALGORITHMS.

PEM keys are loaded with ``cryptography`` here rather than handed to PyJWT
as strings, so a key of the wrong type (an RSA key for ES256, a PEM blob
used as an HMAC secret) fails when the engine is built instead of on the
first request.

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_pem_public_key,
)

from .errors import DecodingKeyError, EncodingKeyError, InvalidAlgorithmError


KeyInput = Union[str, bytes]

ENCODING = "encoding"
DECODING = "decoding"


@dataclass(frozen=True)
class AlgorithmSpec:
    """
    One row of the algorithm table.

    ``private_type``/``public_type`` are the cryptography key classes the
    PEM must load as; both None means the key is a raw HMAC secret.
    ``curve`` pins the EC curve for ES* algorithms.
    """

    name: str
    family: str
    private_type: Optional[Type[Any]] = None
    public_type: Optional[Type[Any]] = None
    curve: Optional[Type[ec.EllipticCurve]] = None

    @property
    def is_symmetric(self) -> bool:
        return self.private_type is None


def _hmac(name: str) -> AlgorithmSpec:
    return AlgorithmSpec(name, "HMAC")


def _ec(name: str, curve: Type[ec.EllipticCurve]) -> AlgorithmSpec:
    return AlgorithmSpec(name, "EC", ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey, curve)


def _rsa(name: str, family: str = "RSA") -> AlgorithmSpec:
    return AlgorithmSpec(name, family, rsa.RSAPrivateKey, rsa.RSAPublicKey)


ALGORITHMS: Dict[str, AlgorithmSpec] = {
    spec.name: spec
    for spec in (
        _hmac("HS256"),
        _hmac("HS384"),
        _hmac("HS512"),
        _ec("ES256", ec.SECP256R1),
        _ec("ES384", ec.SECP384R1),
        _rsa("RS256"),
        _rsa("RS384"),
        _rsa("RS512"),
        _rsa("PS256", "RSA-PSS"),
        _rsa("PS384", "RSA-PSS"),
        _rsa("PS512", "RSA-PSS"),
        AlgorithmSpec("EdDSA", "EdDSA", ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey),
    )
}

DEFAULT_ALGORITHM = "HS512"


def get_algorithm(name: str) -> AlgorithmSpec:
    """Look up an algorithm by its exact JWS name ("HS512", "EdDSA")."""
    spec = ALGORITHMS.get(name.strip())
    if spec is None:
        raise InvalidAlgorithmError(name)
    return spec


def _as_bytes(raw: KeyInput) -> bytes:
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    return raw.strip()


def _load(spec: AlgorithmSpec, role: str, data: bytes) -> Any:
    """Load a PEM key for ``role`` and check it has the shape ``spec`` needs."""
    if role == ENCODING:
        key = load_pem_private_key(data, password=None)
        expected = spec.private_type
    else:
        key = load_pem_public_key(data)
        expected = spec.public_type

    if not isinstance(key, expected):
        raise TypeError(f"{spec.name} needs a {spec.family} key, got {type(key).__name__}")
    if spec.curve is not None and not isinstance(key.curve, spec.curve):
        raise TypeError(f"{spec.name} needs curve {spec.curve.name}, got {key.curve.name}")
    return key


@dataclass(frozen=True)
class KeyMaterial:
    """
    A signing or verification key bound to one algorithm.

    Immutable. Build with for_encoding()/for_decoding(); replacing a key
    means building a new KeyMaterial.
    """

    algorithm: str
    role: str
    key: Any

    def __repr__(self) -> str:
        return f"KeyMaterial(algorithm={self.algorithm!r}, role={self.role!r})"

    @classmethod
    def derive(cls, algorithm: str, role: str, raw: KeyInput) -> "KeyMaterial":
        error_type = EncodingKeyError if role == ENCODING else DecodingKeyError
        spec = get_algorithm(algorithm)
        data = _as_bytes(raw)

        if not data:
            raise error_type(f"Empty {role} key for {spec.name}")

        if spec.is_symmetric:
            if data.startswith(b"-----BEGIN"):
                raise error_type(f"{spec.name} needs a raw secret, got a PEM key")
            return cls(spec.name, role, data)

        try:
            key = _load(spec, role, data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise error_type(f"Invalid {role} key for {spec.name}: {e}") from e
        return cls(spec.name, role, key)

    @classmethod
    def for_encoding(cls, algorithm: str, raw: KeyInput) -> "KeyMaterial":
        """Signing key: the secret for HMAC, a private PEM otherwise."""
        return cls.derive(algorithm, ENCODING, raw)

    @classmethod
    def for_decoding(cls, algorithm: str, raw: KeyInput) -> "KeyMaterial":
        """Verification key: the secret for HMAC, a public PEM otherwise."""
        return cls.derive(algorithm, DECODING, raw)


def required_inputs(algorithm: str) -> Tuple[str, str]:
    """Names of the init() arguments holding the encoding and decoding key."""
    if get_algorithm(algorithm).is_symmetric:
        return "secret", "secret"
    return "private_key", "public_key"
