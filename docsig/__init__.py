"""Append-only signature stacks for JSON documents.

Example:
    from docsig import sign, verify

    signed = sign({"key1": "hello"}, private_key_pem)
    result = await verify(signed)
    assert result.unchanged and result.original == {"key1": "hello"}
"""

from docsig._version import __version__
from docsig.core.crypto import (
    CANONICALIZATION_LEGACY_V1,
    CANONICALIZATION_RFC8785,
    HashInfo,
    TrustedKeyCache,
    TrustedKeyList,
    VerificationResult,
    canonicalize,
    get_trusted_key_cache,
    hash_document,
    pop_signature,
    push_signature,
    serialize,
    sign,
    verify,
    verify_or_raise,
)
from docsig.core.errors import (
    DocsigError,
    MalformedTokenError,
    MissingKeyMaterialError,
    NoSignatureError,
    SerializationError,
    SigningError,
    TrustedListUnavailableError,
    VerificationFailedError,
)

__all__ = [
    "__version__",
    "sign",
    "verify",
    "verify_or_raise",
    "hash_document",
    "serialize",
    "canonicalize",
    "push_signature",
    "pop_signature",
    "HashInfo",
    "VerificationResult",
    "TrustedKeyCache",
    "TrustedKeyList",
    "get_trusted_key_cache",
    "CANONICALIZATION_LEGACY_V1",
    "CANONICALIZATION_RFC8785",
    "DocsigError",
    "NoSignatureError",
    "MissingKeyMaterialError",
    "MalformedTokenError",
    "SigningError",
    "SerializationError",
    "TrustedListUnavailableError",
    "VerificationFailedError",
]
