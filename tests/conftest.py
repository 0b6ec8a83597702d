"""
pytest configuration and fixtures.
"""

from typing import Dict

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from apitools.metrics import PrometheusMetrics, SystemMetrics


HMAC_SECRET = "a" * 32 + "b" * 32 + "c" * 32


def _pem_pair(private_key) -> Dict[str, str]:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return {"private_key": private_pem, "public_key": public_pem}


@pytest.fixture(scope="session")
def key_pairs() -> Dict[str, Dict[str, str]]:
    """PEM key pairs per key family, generated once per test session."""
    return {
        "ec256": _pem_pair(ec.generate_private_key(ec.SECP256R1())),
        "ec384": _pem_pair(ec.generate_private_key(ec.SECP384R1())),
        "rsa": _pem_pair(rsa.generate_private_key(public_exponent=65537, key_size=2048)),
        "ed25519": _pem_pair(ed25519.Ed25519PrivateKey.generate()),
    }


@pytest.fixture
def secret() -> str:
    return HMAC_SECRET


@pytest.fixture
def metrics() -> PrometheusMetrics:
    """Sink on a private registry, so tests never share counters."""
    return PrometheusMetrics()


@pytest.fixture
def system_sample() -> SystemMetrics:
    return SystemMetrics(
        cpu_usage=12.5,
        total_memory=8 * 1024 ** 3,
        used_memory=3 * 1024 ** 3,
        total_swap=2 * 1024 ** 3,
        used_swap=1024 ** 3,
        total_disks_space=500 * 1024 ** 3,
        used_disks_usage=200 * 1024 ** 3,
    )
