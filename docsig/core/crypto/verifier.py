"""
Document signature verification.

Only the most recent signature is checked. Earlier signatures are preserved
in ``original`` but not re-validated. The three outcomes (``valid``,
``trusted`` and ``unchanged``) are reported independently so that callers
can apply their own policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from docsig.core.crypto.canonicalization import CANONICALIZATION_LEGACY_V1, CANONICALIZATION_MODES
from docsig.core.crypto.hashing import HASH_ALGORITHM_SHA256, hash_document
from docsig.core.crypto.jws import validate_token
from docsig.core.crypto.keys import key_fingerprint
from docsig.core.crypto.stack import get_signatures, pop_signature
from docsig.core.crypto.trusted_keys import TrustedKeyCache, get_trusted_key_cache
from docsig.core.errors import NoSignatureError, VerificationFailedError
from docsig.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class VerificationResult:
    """Result of verifying a document's most recent signature.

    Attributes
    ----------
    trusted:
        The signing key's fingerprint is on the trusted registry.
    valid:
        The signature is a well-formed JWS that verifies against its key.
    unchanged:
        The document content matches the hash recorded at signing time.
    payload:
        Decoded signature payload.
    header:
        Decoded JWS header.
    original:
        The document with the verified signature removed.
    details:
        Human-readable notes on any check that did not pass.
    allow_untrusted:
        Whether an untrusted signer still counts as a pass for :attr:`ok`.
    """

    trusted: bool
    valid: bool
    unchanged: bool
    payload: dict[str, Any]
    header: dict[str, Any]
    original: Any
    details: list[str] = field(default_factory=list)
    allow_untrusted: bool = False
    fingerprint: str | None = None

    @property
    def ok(self) -> bool:
        return self.valid and self.unchanged and (self.trusted or self.allow_untrusted)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "trusted": self.trusted,
            "valid": self.valid,
            "unchanged": self.unchanged,
            "fingerprint": self.fingerprint,
            "payload": self.payload,
            "header": self.header,
            "original": self.original,
            "details": list(self.details),
        }


async def verify(
    document: Any,
    *,
    allow_untrusted: bool = False,
    trusted_keys: TrustedKeyCache | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> VerificationResult:
    """Verify the most recent signature on ``document``.

    Raises
    ------
    NoSignatureError
        If the document has no signatures.
    MalformedTokenError
        If the top signature cannot be decoded.
    TrustedListUnavailableError
        If the trusted registry has to be fetched and cannot be.
    """
    signatures = get_signatures(document)
    if not signatures:
        raise NoSignatureError("Document has no signatures to be verified.")

    validation = await validate_token(signatures[-1], http_client=http_client)
    details = validation.details

    fingerprint = (
        key_fingerprint(validation.public_key) if validation.public_key is not None else None
    )
    cache = trusted_keys if trusted_keys is not None else get_trusted_key_cache()
    trusted = await cache.is_trusted(fingerprint)
    if fingerprint is not None and not trusted:
        details.append("Signer key is not on the trusted list")

    original = pop_signature(document)
    unchanged = _check_unchanged(validation.payload, original, details)

    result = VerificationResult(
        trusted=trusted,
        valid=validation.valid,
        unchanged=unchanged,
        payload=validation.payload,
        header=validation.header,
        original=original,
        details=details,
        allow_untrusted=allow_untrusted,
        fingerprint=fingerprint,
    )
    logger.info(
        "signature_verified",
        trusted=trusted,
        valid=result.valid,
        unchanged=unchanged,
        key_source=validation.key_source,
        signature_count=len(signatures),
    )
    return result


def _check_unchanged(payload: dict[str, Any], original: Any, details: list[str]) -> bool:
    hashinfo = payload.get("hashinfo")
    if not isinstance(hashinfo, dict) or not hashinfo.get("hash"):
        details.append("Signature payload has no hashinfo.hash to compare against")
        return False

    algorithm = hashinfo.get("alg", HASH_ALGORITHM_SHA256)
    if algorithm != HASH_ALGORITHM_SHA256:
        details.append(f"Unsupported hash algorithm {algorithm!r} in signature payload")
        return False
    canonicalization = hashinfo.get("canonicalization", CANONICALIZATION_LEGACY_V1)
    if canonicalization not in CANONICALIZATION_MODES:
        details.append(f"Unsupported canonicalization {canonicalization!r} in signature payload")
        return False

    recomputed = hash_document(original, canonicalization=canonicalization)
    if recomputed["hash"] != hashinfo["hash"]:
        details.append(
            "Document content has changed since signing "
            f"(signed={hashinfo['hash']!r}, recomputed={recomputed['hash']!r})"
        )
        return False
    return True


async def verify_or_raise(
    document: Any,
    *,
    allow_untrusted: bool = False,
    trusted_keys: TrustedKeyCache | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> VerificationResult:
    """Verify ``document`` and raise unless every required check passes.

    An untrusted signer passes when ``allow_untrusted`` is set.

    Raises
    ------
    VerificationFailedError
        Carrying the full :class:`VerificationResult` on ``.result``.
    """
    result = await verify(
        document,
        allow_untrusted=allow_untrusted,
        trusted_keys=trusted_keys,
        http_client=http_client,
    )
    if not result.ok:
        raise VerificationFailedError(result)
    return result
