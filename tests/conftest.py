"""
Pytest fixtures for docsig tests.
Provides signing keys, isolated settings and trusted key caches that never touch the network.
"""

from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

import pytest
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from docsig.core.config import get_settings
from docsig.core.crypto.keys import key_fingerprint, public_jwk
from docsig.core.crypto.trusted_keys import TrustedKeyCache, get_trusted_key_cache

TEST_REGISTRY_URL = "https://registry.test/keys.json"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point settings at a test registry and reset cached singletons."""
    monkeypatch.setenv("DOCSIG_TRUSTED_LIST_URLS", TEST_REGISTRY_URL)
    monkeypatch.delenv("DOCSIG_CANONICALIZATION", raising=False)
    monkeypatch.delenv("DOCSIG_RESERVED_KEYS", raising=False)
    get_settings.cache_clear()
    get_trusted_key_cache.cache_clear()
    yield
    get_settings.cache_clear()
    get_trusted_key_cache.cache_clear()
    structlog.reset_defaults()


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def ec_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ed25519_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def rsa_public_jwk(rsa_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    return public_jwk(rsa_key.public_key())


@pytest.fixture
def rsa_fingerprint(rsa_key: rsa.RSAPrivateKey) -> str:
    return key_fingerprint(rsa_key.public_key())


class FakeRegistry:
    """Async fetch stand-in that serves fixed registry documents and counts calls."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self.documents = documents or {TEST_REGISTRY_URL: {"keys": []}}
        self.calls: list[str] = []

    async def __call__(self, url: str) -> dict[str, Any]:
        self.calls.append(url)
        return self.documents[url]


class FakeClock:
    """Settable clock for cache freshness tests."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def make_cache() -> Callable[..., TrustedKeyCache]:
    """Build a TrustedKeyCache over a FakeRegistry serving the given keys."""

    def _make(
        keys: list[dict[str, Any]] | None = None,
        *,
        registry: FakeRegistry | None = None,
        clock: FakeClock | None = None,
    ) -> TrustedKeyCache:
        registry = registry or FakeRegistry({TEST_REGISTRY_URL: {"keys": keys or []}})
        return TrustedKeyCache(
            [TEST_REGISTRY_URL],
            fetch=registry,
            clock=clock or FakeClock(),
        )

    return _make


@pytest.fixture
def untrusted_cache(make_cache: Callable[..., TrustedKeyCache]) -> TrustedKeyCache:
    """A cache whose registry trusts nobody."""
    return make_cache([])
