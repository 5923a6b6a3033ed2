"""
SHA-256 document hashing for tamper detection.

A document's hash is computed as ``SHA256(canonicalize(document))`` after
removing reserved top-level keys. The hash is embedded in each signature's
payload and recomputed on verification against the document with that
signature removed.
"""

from __future__ import annotations

import hashlib
from collections.abc import Collection, Mapping
from typing import Any, NotRequired, TypedDict

from docsig.core.config import get_settings
from docsig.core.crypto.canonicalization import CANONICALIZATION_LEGACY_V1, canonicalize
from docsig.core.errors import SerializationError

HASH_ALGORITHM_SHA256 = "SHA256"


class HashInfo(TypedDict):
    """Algorithm-tagged digest of a document's canonical form."""

    alg: str
    hash: str
    canonicalization: NotRequired[str]


def strip_reserved_keys(
    document: Any, reserved_keys: Collection[str] | None = None
) -> Any:
    """Return ``document`` without its reserved top-level keys.

    Non-mapping documents are returned as-is.
    """
    if not isinstance(document, Mapping):
        return document
    if reserved_keys is None:
        reserved_keys = get_settings().reserved_keys_all
    return {k: v for k, v in document.items() if k not in reserved_keys}


def hash_document(
    document: Any,
    *,
    keep_reserved_keys: bool = False,
    reserved_keys: Collection[str] | None = None,
    canonicalization: str | None = None,
    algorithm: str = HASH_ALGORITHM_SHA256,
) -> HashInfo:
    """Compute the tamper-evidence fingerprint of a document.

    Parameters
    ----------
    document:
        Any JSON-compatible value. A bare number is rejected because numbers
        do not hash consistently across implementations.
    keep_reserved_keys:
        Include reserved top-level keys (``_id``, ``_meta``, ``_rev`` by
        default) in the hash.
    reserved_keys:
        Override the configured reserved keys.
    canonicalization:
        Canonicalization mode, defaulting to the configured mode. Non-default
        modes are recorded on the returned HashInfo.

    Returns
    -------
    HashInfo
        ``{"alg": "SHA256", "hash": <64 hex chars>}``.
    """
    if algorithm != HASH_ALGORITHM_SHA256:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    if isinstance(document, (int, float)) and not isinstance(document, bool):
        raise SerializationError(
            "Cannot hash a bare number as a document. Wrap it in an object or use a string."
        )
    if canonicalization is None:
        canonicalization = get_settings().canonicalization

    if not keep_reserved_keys:
        document = strip_reserved_keys(document, reserved_keys)

    digest = hashlib.sha256(canonicalize(document, canonicalization=canonicalization)).hexdigest()
    info: HashInfo = {"alg": algorithm, "hash": digest}
    if canonicalization != CANONICALIZATION_LEGACY_V1:
        info["canonicalization"] = canonicalization
    return info
