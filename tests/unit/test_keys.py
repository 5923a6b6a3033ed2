"""Tests for key resolution, JWK export and thumbprints."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from jwt.algorithms import RSAAlgorithm

from docsig.core.crypto.keys import (
    algorithms_for_key,
    detect_algorithm,
    jwk_thumbprint,
    key_fingerprint,
    load_public_jwk,
    public_jwk,
    resolve_private_key,
)
from docsig.core.errors import MissingKeyMaterialError

# RFC 7638 section 3.1 example key and thumbprint
RFC7638_JWK = {
    "kty": "RSA",
    "n": (
        "0vx7agoebGcQSuuPiLJXZptN9nndrQmbXEps2aiAFbWhM78LhWx4cbbfAAtVT86zwu1RK7aPFFxuhDR1L6tSoc_BJECP"
        "ebWKRXjBZCiFV4n3oknjhMstn64tZ_2W-5JsGY4Hc5n9yBXArwl93lqt7_RN5w6Cf0h4QyQ5v-65YGjQR0_FDW2QvzqY"
        "368QQMicAtaSqzs8KJZgnYb9c7d0zgdAZHzu6qMQvRL5hajrn1n91CbOpbISD08qNLyrdkt-bFTWhAI4vMQFh6WeZu0f"
        "M4lFd2NcRwr3XPksINHaQ-G_xBniIqbw0Ls1jF44-csFCur-kEgU8awapJzKnqDKgw"
    ),
    "e": "AQAB",
    "alg": "RS256",
    "kid": "2011-04-29",
}
RFC7638_THUMBPRINT = "NzbLsXh8uDCcd-6MNwXF4W_7noWXFZAfHkxZsRGC9Xs"


class TestResolvePrivateKey:
    def test_pem(self, rsa_pem: str) -> None:
        resolved = resolve_private_key(rsa_pem)
        assert resolved.kind == "pem"
        assert isinstance(resolved.private_key, rsa.RSAPrivateKey)
        assert resolved.algorithm == "RS256"

    def test_pem_bytes(self, rsa_pem: str) -> None:
        assert resolve_private_key(rsa_pem.encode()).kind == "pem"

    def test_key_object(self, ec_key: ec.EllipticCurvePrivateKey) -> None:
        resolved = resolve_private_key(ec_key)
        assert resolved.kind == "object"
        assert resolved.algorithm == "ES256"

    def test_private_jwk(self, rsa_key: rsa.RSAPrivateKey) -> None:
        jwk = RSAAlgorithm.to_jwk(rsa_key, as_dict=True)
        resolved = resolve_private_key(jwk)
        assert resolved.kind == "jwk"
        assert resolved.public_jwk() == public_jwk(rsa_key.public_key())

    def test_resolved_key_passthrough(self, rsa_pem: str) -> None:
        resolved = resolve_private_key(rsa_pem)
        assert resolve_private_key(resolved) is resolved

    @pytest.mark.parametrize("key", [None, "", {}])
    def test_missing_key(self, key: object) -> None:
        with pytest.raises(MissingKeyMaterialError, match="private key is required"):
            resolve_private_key(key)

    def test_garbage_pem(self) -> None:
        with pytest.raises(MissingKeyMaterialError, match="could not be loaded"):
            resolve_private_key("not-a-valid-pem-key")

    def test_public_jwk_is_not_a_signing_key(self, rsa_public_jwk: dict) -> None:
        with pytest.raises(MissingKeyMaterialError, match="no private component"):
            resolve_private_key(rsa_public_jwk)

    def test_unsupported_type(self) -> None:
        with pytest.raises(MissingKeyMaterialError, match="Unsupported private key type"):
            resolve_private_key(12345)


class TestAlgorithms:
    def test_detect(
        self,
        rsa_key: rsa.RSAPrivateKey,
        ec_key: ec.EllipticCurvePrivateKey,
        ed25519_key: ed25519.Ed25519PrivateKey,
    ) -> None:
        assert detect_algorithm(rsa_key) == "RS256"
        assert detect_algorithm(ec_key.public_key()) == "ES256"
        assert detect_algorithm(ed25519_key) == "EdDSA"
        assert detect_algorithm(ec.generate_private_key(ec.SECP384R1())) == "ES384"

    def test_algorithms_for_key(
        self, rsa_key: rsa.RSAPrivateKey, ec_key: ec.EllipticCurvePrivateKey
    ) -> None:
        assert "PS256" in algorithms_for_key(rsa_key.public_key())
        assert algorithms_for_key(ec_key.public_key()) == ("ES256",)


class TestJwkExport:
    def test_rsa(self, rsa_key: rsa.RSAPrivateKey) -> None:
        jwk = public_jwk(rsa_key.public_key())
        assert jwk["kty"] == "RSA"
        assert jwk["e"] == "AQAB"
        assert "d" not in jwk

    def test_ec(self, ec_key: ec.EllipticCurvePrivateKey) -> None:
        jwk = public_jwk(ec_key.public_key())
        assert jwk["kty"] == "EC"
        assert jwk["crv"] == "P-256"
        assert {"x", "y"} <= set(jwk)

    def test_ed25519(self, ed25519_key: ed25519.Ed25519PrivateKey) -> None:
        jwk = public_jwk(ed25519_key.public_key())
        assert jwk == {"kty": "OKP", "crv": "Ed25519", "x": jwk["x"]}

    def test_load_public_jwk_roundtrip(self, ec_key: ec.EllipticCurvePrivateKey) -> None:
        loaded = load_public_jwk(public_jwk(ec_key.public_key()))
        assert isinstance(loaded, ec.EllipticCurvePublicKey)
        assert key_fingerprint(loaded) == key_fingerprint(ec_key.public_key())

    @pytest.mark.parametrize("value", [None, "jwk", {"kty": "RSA"}])
    def test_load_public_jwk_rejects_garbage(self, value: object) -> None:
        assert load_public_jwk(value) is None


class TestThumbprint:
    def test_rfc7638_example(self) -> None:
        assert jwk_thumbprint(RFC7638_JWK) == RFC7638_THUMBPRINT

    def test_ignores_optional_members(self) -> None:
        stripped = {k: RFC7638_JWK[k] for k in ("kty", "n", "e")}
        assert jwk_thumbprint(stripped) == RFC7638_THUMBPRINT

    def test_missing_member(self) -> None:
        with pytest.raises(ValueError, match="missing required members"):
            jwk_thumbprint({"kty": "EC", "crv": "P-256", "x": "abc"})

    def test_unknown_kty(self) -> None:
        with pytest.raises(ValueError, match="Unsupported JWK key type"):
            jwk_thumbprint({"kty": "oct", "k": "secret"})
