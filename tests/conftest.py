import time
from collections.abc import Callable
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from enhancer_auth import EnhancerAuthSettings

SERVICE_ID = "my-service"
ISSUER = "https://auth.enhancer.at"
ACCOUNT_ID = "3f1c2b7a-9d4e-4c1a-8b2f-6e5d4c3b2a10"


def _generate_key_pair() -> tuple[str, str]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_keys() -> tuple[str, str]:
    """(private PEM, public PEM) of the trusted signing key."""
    return _generate_key_pair()


@pytest.fixture(scope="session")
def other_rsa_keys() -> tuple[str, str]:
    """A second, untrusted key pair."""
    return _generate_key_pair()


@pytest.fixture()
def public_pem(rsa_keys: tuple[str, str]) -> str:
    return rsa_keys[1]


@pytest.fixture()
def claims() -> dict[str, Any]:
    now = int(time.time())
    return {
        "sub": ACCOUNT_ID,
        "username": "alice",
        "profilePicture": "https://cdn.enhancer.at/avatars/alice.png",
        "iss": ISSUER,
        "iat": now,
        "exp": now + 900,
        "aud": SERVICE_ID,
        "scope": ["READ", "WRITE"],
    }


@pytest.fixture()
def sign(rsa_keys: tuple[str, str]) -> Callable[..., str]:
    private_pem, _ = rsa_keys

    def _sign(payload: dict[str, Any], key: str | None = None, algorithm: str = "RS256") -> str:
        return jwt.encode(payload, key or private_pem, algorithm=algorithm)

    return _sign


@pytest.fixture()
def settings() -> EnhancerAuthSettings:
    return EnhancerAuthSettings(
        auth_backend_url="http://auth.test/",
        auth_frontend_url="https://auth.enhancer.at/",
        service_id=SERVICE_ID,
        service_secret="secret_abc123",
    )
