"""Key material handling at the JWS boundary.

Signing keys arrive as PEM text, ``cryptography`` key objects or JWK dicts.
They are resolved once into a :class:`ResolvedKey` before any hashing or
stack logic runs.
"""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Literal

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from jwt.exceptions import InvalidKeyError, PyJWKError

from docsig.core.errors import MissingKeyMaterialError

PrivateKeyTypes = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey | ed25519.Ed25519PrivateKey
PublicKeyTypes = rsa.RSAPublicKey | ec.EllipticCurvePublicKey | ed25519.Ed25519PublicKey

KeyKind = Literal["pem", "object", "jwk"]

_RSA_ALGORITHMS = ("RS256", "RS384", "RS512", "PS256", "PS384", "PS512")
_EC_ALGORITHMS = {
    "P-256": ("ES256",),
    "P-384": ("ES384",),
    "P-521": ("ES512",),
}
ASYMMETRIC_ALGORITHMS = frozenset(
    {*_RSA_ALGORITHMS, "ES256", "ES384", "ES512", "EdDSA"}
)

# RFC 7638 required members per key type
_THUMBPRINT_MEMBERS = {
    "RSA": ("e", "kty", "n"),
    "EC": ("crv", "kty", "x", "y"),
    "OKP": ("crv", "kty", "x"),
}


@dataclass(frozen=True)
class ResolvedKey:
    """A private signing key together with the form it was supplied in."""

    kind: KeyKind
    private_key: PrivateKeyTypes

    @property
    def algorithm(self) -> str:
        """Default JWS algorithm for this key."""
        return detect_algorithm(self.private_key)

    @property
    def algorithms(self) -> tuple[str, ...]:
        """Every JWS algorithm this key can sign with."""
        return algorithms_for_key(self.private_key.public_key())

    def public_jwk(self) -> dict[str, Any]:
        return public_jwk(self.private_key.public_key())


def resolve_private_key(key: Any) -> ResolvedKey:
    """Resolve a PEM string, key object or JWK dict into a :class:`ResolvedKey`.

    Raises
    ------
    MissingKeyMaterialError
        If no key is given or it is not a usable RSA, EC or Ed25519 private key.
    """
    if isinstance(key, ResolvedKey):
        return key
    if not key:
        raise MissingKeyMaterialError("A private key is required to sign a document.")
    if isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey)):
        return ResolvedKey(kind="object", private_key=key)
    if isinstance(key, (str, bytes)):
        return ResolvedKey(kind="pem", private_key=_load_pem_private_key(key))
    if isinstance(key, dict):
        return ResolvedKey(kind="jwk", private_key=_load_jwk_private_key(key))
    raise MissingKeyMaterialError(
        f"Unsupported private key type {type(key).__name__}. "
        "Pass PEM text, a cryptography private key, or a private JWK dict."
    )


def _load_pem_private_key(pem: str | bytes) -> PrivateKeyTypes:
    data = pem.encode("utf-8") if isinstance(pem, str) else pem
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise MissingKeyMaterialError(f"Private key PEM could not be loaded: {exc}") from exc
    if not isinstance(
        key,
        (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey),
    ):
        raise MissingKeyMaterialError(f"Unsupported key type: {type(key).__name__}")
    return key


def _load_jwk_private_key(jwk: dict[str, Any]) -> PrivateKeyTypes:
    try:
        key = jwt.PyJWK(jwk).key
    except (PyJWKError, InvalidKeyError, ValueError, TypeError) as exc:
        raise MissingKeyMaterialError(f"Private JWK could not be loaded: {exc}") from exc
    if not isinstance(
        key,
        (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey),
    ):
        raise MissingKeyMaterialError("JWK has no private component; a private JWK is required.")
    return key


def load_public_jwk(jwk: Any) -> PublicKeyTypes | None:
    """Load a public key from a JWK dict, or ``None`` if it is not a usable public key."""
    if not isinstance(jwk, dict):
        return None
    try:
        key = jwt.PyJWK(jwk).key
    except (PyJWKError, InvalidKeyError, ValueError, TypeError):
        return None
    if isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey)):
        key = key.public_key()
    if not isinstance(key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey)):
        return None
    return key


# ======================================================================
# Algorithms
# ======================================================================


def detect_algorithm(key: PrivateKeyTypes | PublicKeyTypes) -> str:
    if isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
        return "RS256"
    if isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        curve = key.curve
        if isinstance(curve, ec.SECP384R1):
            return "ES384"
        if isinstance(curve, ec.SECP521R1):
            return "ES512"
        return "ES256"
    if isinstance(key, (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey)):
        return "EdDSA"
    return "RS256"


def algorithms_for_key(key: PublicKeyTypes) -> tuple[str, ...]:
    if isinstance(key, rsa.RSAPublicKey):
        return _RSA_ALGORITHMS
    if isinstance(key, ec.EllipticCurvePublicKey):
        return _EC_ALGORITHMS.get(_curve_name(key.curve), ())
    if isinstance(key, ed25519.Ed25519PublicKey):
        return ("EdDSA",)
    return ()


def _curve_name(curve: ec.EllipticCurve) -> str:
    if isinstance(curve, ec.SECP256R1):
        return "P-256"
    if isinstance(curve, ec.SECP384R1):
        return "P-384"
    if isinstance(curve, ec.SECP521R1):
        return "P-521"
    return curve.name


# ======================================================================
# JWK export and thumbprints
# ======================================================================


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def public_jwk(key: PublicKeyTypes) -> dict[str, Any]:
    """Export a public key as a JWK dict."""
    if isinstance(key, rsa.RSAPublicKey):
        return _rsa_public_jwk(key)
    if isinstance(key, ec.EllipticCurvePublicKey):
        return _ec_public_jwk(key)
    if isinstance(key, ed25519.Ed25519PublicKey):
        return _ed25519_public_jwk(key)
    msg = f"Unsupported key type: {type(key).__name__}"
    raise TypeError(msg)


def _rsa_public_jwk(pk: rsa.RSAPublicKey) -> dict[str, Any]:
    pub = pk.public_numbers()
    n_bytes = pub.n.to_bytes((pub.n.bit_length() + 7) // 8, "big")
    e_bytes = pub.e.to_bytes((pub.e.bit_length() + 7) // 8, "big")
    return {
        "kty": "RSA",
        "n": _b64url(n_bytes),
        "e": _b64url(e_bytes),
    }


def _ec_public_jwk(pk: ec.EllipticCurvePublicKey) -> dict[str, Any]:
    pub = pk.public_numbers()
    crv = _curve_name(pk.curve)
    size = (pk.curve.key_size + 7) // 8
    return {
        "kty": "EC",
        "crv": crv,
        "x": _b64url(pub.x.to_bytes(size, "big")),
        "y": _b64url(pub.y.to_bytes(size, "big")),
    }


def _ed25519_public_jwk(pk: ed25519.Ed25519PublicKey) -> dict[str, Any]:
    pub_bytes = pk.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
    return {
        "kty": "OKP",
        "crv": "Ed25519",
        "x": _b64url(pub_bytes),
    }


def jwk_thumbprint(jwk: dict[str, Any]) -> str:
    """Compute the RFC 7638 SHA-256 thumbprint of a JWK.

    Raises
    ------
    ValueError
        If the key type is unknown or a required member is missing.
    """
    kty = jwk.get("kty")
    members = _THUMBPRINT_MEMBERS.get(str(kty))
    if members is None:
        raise ValueError(f"Unsupported JWK key type for thumbprint: {kty!r}")
    missing = [m for m in members if not isinstance(jwk.get(m), str)]
    if missing:
        raise ValueError(f"JWK is missing required members: {', '.join(missing)}")
    required = {m: jwk[m] for m in members}
    canonical = json.dumps(required, sort_keys=True, separators=(",", ":"))
    return _b64url(hashlib.sha256(canonical.encode("utf-8")).digest())


def key_fingerprint(key: PublicKeyTypes) -> str:
    """Fingerprint used for trusted list lookups: the thumbprint of the public JWK."""
    return jwk_thumbprint(public_jwk(key))
