"""
Document signing.

A signature is a compact JWS whose payload records the hash of the document
as it was before signing. The token is appended to the document's
``signatures`` list; the input document is never modified.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from docsig._version import __version__
from docsig.core.crypto.hashing import hash_document
from docsig.core.crypto.jws import encode_token
from docsig.core.crypto.keys import ResolvedKey, jwk_thumbprint, resolve_private_key
from docsig.core.crypto.schemas import SignaturePayload, SignerInfo
from docsig.core.crypto.stack import normalize_signatures, push_signature
from docsig.core.errors import MissingKeyMaterialError, SigningError
from docsig.core.logging import get_logger

logger = get_logger(__name__)


def sign(
    document: Mapping[str, Any],
    private_key: Any,
    *,
    signer: SignerInfo | Mapping[str, Any] | None = None,
    signature_type: str | None = None,
    header: Mapping[str, Any] | None = None,
    canonicalization: str | None = None,
) -> dict[str, Any]:
    """Append a signature over ``document`` and return the signed copy.

    Parameters
    ----------
    document:
        JSON object to sign. Existing signatures are covered by the new one.
    private_key:
        PEM text, a ``cryptography`` private key, or a private JWK dict.
    signer:
        Optional ``{"name": ..., "url": ...}`` identifying the signer.
    signature_type:
        Optional kind of signature, e.g. ``"transcription"``.
    header:
        Extra JWS header fields. Either ``jwk`` or ``jku`` with ``kid`` lets a
        verifier find the public key; the public JWK of ``private_key`` is
        embedded when no ``jwk`` is given.
    canonicalization:
        Canonicalization mode for the document hash, defaulting to settings.

    Raises
    ------
    MissingKeyMaterialError
        No usable private key, or an incomplete key locator in ``header``.
    SigningError
        The JWS library could not produce a token.
    """
    if not isinstance(document, Mapping):
        raise TypeError(f"Only JSON objects can be signed, got {type(document).__name__}")
    key = resolve_private_key(private_key)
    jws_header = _build_header(header, key)

    base = normalize_signatures(document)
    payload = SignaturePayload(
        version=__version__,
        iat=int(datetime.now(UTC).timestamp()),
        hashinfo=dict(hash_document(base, canonicalization=canonicalization)),
        signer=SignerInfo.model_validate(dict(signer)) if signer is not None else None,
        type=signature_type,
    )

    token = encode_token(payload.to_claims(), jws_header, key)
    signed = push_signature(base, token)
    logger.info(
        "document_signed",
        alg=jws_header["alg"],
        kid=jws_header.get("kid"),
        key_kind=key.kind,
        signature_count=len(signed["signatures"]),
    )
    return signed


def _build_header(header: Mapping[str, Any] | None, key: ResolvedKey) -> dict[str, Any]:
    """Validate the caller's key locator and fill in header defaults."""
    jws_header = dict(header or {})
    public = key.public_jwk()

    if "jku" in jws_header:
        jku = jws_header["jku"]
        if not isinstance(jku, str) or not jku:
            raise MissingKeyMaterialError("jku given, but it is not a URL string.")
        kid = jws_header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise MissingKeyMaterialError(
                "A jku requires an accompanying kid string to look up the key in the key set."
            )

    if "jwk" in jws_header:
        supplied = jws_header["jwk"]
        try:
            matches = isinstance(supplied, dict) and jwk_thumbprint(supplied) == jwk_thumbprint(
                public
            )
        except ValueError:
            matches = False
        if not matches:
            raise MissingKeyMaterialError(
                "Header jwk is not the public key of the signing key. "
                "Omit it to embed the matching public key automatically."
            )
    else:
        jws_header["jwk"] = public

    algorithm = jws_header.setdefault("alg", key.algorithm)
    if algorithm not in key.algorithms:
        raise SigningError(
            f"Algorithm {algorithm!r} cannot be used with a {public['kty']} key. "
            f"Use one of: {', '.join(key.algorithms)}"
        )
    jws_header.setdefault("typ", "JWT")
    jws_header.setdefault("kty", public["kty"])
    jws_header["iat"] = int(datetime.now(UTC).timestamp())
    return jws_header
