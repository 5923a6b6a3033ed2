"""
JWS encoding and validation through PyJWT.

This module is the boundary to the signing library: it turns payloads into
compact JWS tokens, decodes tokens, resolves the public key named by a token
header (embedded ``jwk`` or ``jku`` + ``kid``) and checks signatures. It knows
nothing about documents, hashes or trust.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import jwt

from docsig.core.crypto.keys import (
    ASYMMETRIC_ALGORITHMS,
    PublicKeyTypes,
    ResolvedKey,
    load_public_jwk,
)
from docsig.core.errors import MalformedTokenError, SigningError
from docsig.core.http import fetch_json
from docsig.core.logging import get_logger

logger = get_logger(__name__)

# Expiry and audience are not part of document signatures
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}


@dataclass(frozen=True)
class DecodedToken:
    """Header and payload of a token, read without checking the signature."""

    header: dict[str, Any]
    payload: dict[str, Any]


@dataclass
class TokenValidation:
    """Outcome of checking a token's signature against its resolved key."""

    valid: bool
    header: dict[str, Any]
    payload: dict[str, Any]
    public_key: PublicKeyTypes | None = None
    key_source: str | None = None
    details: list[str] = field(default_factory=list)


def encode_token(payload: dict[str, Any], header: dict[str, Any], key: ResolvedKey) -> str:
    """Sign ``payload`` into a compact JWS using the algorithm named in ``header``."""
    algorithm = header.get("alg") or key.algorithm
    try:
        token = jwt.encode(payload, key.private_key, algorithm=algorithm, headers=header)
    except Exception as exc:
        raise SigningError(f"JWS signing failed: {exc}") from exc
    if not token:
        raise SigningError("Signature could not be generated")
    return token


def decode_unverified(token: Any) -> DecodedToken:
    """Split a token into header and payload without verifying it.

    Raises
    ------
    MalformedTokenError
        If the token is not a compact JWS with a JSON object header naming an
        algorithm and a JSON object payload.
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise MalformedTokenError("Signature is not a compact JWS token.")
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise MalformedTokenError(f"Malformed signature (JWS could not be decoded): {exc}") from exc
    if not isinstance(header.get("alg"), str):
        raise MalformedTokenError("Malformed signature (JWS header has no alg).")
    if not isinstance(payload, dict):
        raise MalformedTokenError("Malformed signature (JWS payload is not an object).")
    return DecodedToken(header=header, payload=payload)


async def resolve_public_key(
    header: dict[str, Any],
    *,
    details: list[str],
    http_client: httpx.AsyncClient | None = None,
) -> tuple[PublicKeyTypes | None, str | None]:
    """Find the public key a token header points at.

    A ``jku`` + ``kid`` pair is tried first. If the key set cannot be fetched
    or has no matching ``kid``, the embedded ``jwk`` is used instead. Returns
    the key and its source (``"jku"`` or ``"jwk"``), or ``(None, None)``.
    """
    jku = header.get("jku")
    kid = header.get("kid")
    if isinstance(jku, str) and isinstance(kid, str):
        try:
            key_set = await fetch_json(jku, client=http_client)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("jku_resolution_failed", jku=jku, kid=kid, error=str(exc))
            details.append(f"Could not fetch key set from jku {jku}: {exc}")
        else:
            entries = key_set.get("keys")
            if not isinstance(entries, list):
                logger.warning("jku_resolution_failed", jku=jku, kid=kid, error="no keys list")
                details.append(f"Key set at jku {jku} has no 'keys' list")
            else:
                for entry in entries:
                    if isinstance(entry, dict) and entry.get("kid") == kid:
                        key = load_public_jwk(entry)
                        if key is not None:
                            return key, "jku"
                details.append(f"No usable key with kid {kid!r} found at jku {jku}")

    if "jwk" in header:
        key = load_public_jwk(header["jwk"])
        if key is not None:
            return key, "jwk"
        details.append("Embedded jwk in header is not a usable public key")

    details.append("No public key could be resolved: header needs a jwk or a jku with kid")
    return None, None


async def validate_token(
    token: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> TokenValidation:
    """Decode ``token``, resolve its key and check its signature.

    Only ``MalformedTokenError`` is raised. An unresolvable key or a bad
    signature yields ``valid=False`` with the reason in ``details``.
    """
    decoded = decode_unverified(token)
    result = TokenValidation(valid=False, header=decoded.header, payload=decoded.payload)

    public_key, source = await resolve_public_key(
        decoded.header, details=result.details, http_client=http_client
    )
    result.public_key = public_key
    result.key_source = source
    if public_key is None:
        return result

    algorithm = decoded.header["alg"]
    if algorithm not in ASYMMETRIC_ALGORITHMS:
        result.details.append(f"Algorithm {algorithm!r} is not an accepted signature algorithm")
        return result

    try:
        jwt.decode(token, public_key, algorithms=[algorithm], options=_DECODE_OPTIONS)
    except jwt.PyJWTError as exc:
        result.details.append(f"Invalid JWS signature: {exc}")
        return result
    except (ValueError, TypeError) as exc:
        result.details.append(f"Verification error: {exc}")
        return result

    result.valid = True
    return result
