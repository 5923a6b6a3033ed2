"""
Document signature primitives.

Pure library modules for tamper-evident document signatures:
- **canonicalization**: deterministic JSON text used as hashing input
- **hashing**: SHA-256 document fingerprints with reserved-key stripping
- **stack**: immutable push/pop over a document's ``signatures`` list
- **keys**: private key resolution, JWK export and thumbprints
- **jws**: PyJWT boundary for encoding and validating tokens
- **trusted_keys**: time-bounded cache of the trusted signer registry
- **signer** / **verifier**: sign and verify orchestration
"""

from docsig.core.crypto.canonicalization import (
    CANONICALIZATION_LEGACY_V1,
    CANONICALIZATION_RFC8785,
    canonicalize,
    serialize,
)
from docsig.core.crypto.hashing import HASH_ALGORITHM_SHA256, HashInfo, hash_document
from docsig.core.crypto.keys import ResolvedKey, jwk_thumbprint, resolve_private_key
from docsig.core.crypto.signer import sign
from docsig.core.crypto.stack import get_signatures, pop_signature, push_signature
from docsig.core.crypto.trusted_keys import (
    TrustedKeyCache,
    TrustedKeyList,
    get_trusted_key_cache,
)
from docsig.core.crypto.verifier import VerificationResult, verify, verify_or_raise

__all__ = [
    "serialize",
    "canonicalize",
    "CANONICALIZATION_LEGACY_V1",
    "CANONICALIZATION_RFC8785",
    "hash_document",
    "HashInfo",
    "HASH_ALGORITHM_SHA256",
    "ResolvedKey",
    "resolve_private_key",
    "jwk_thumbprint",
    "get_signatures",
    "push_signature",
    "pop_signature",
    "TrustedKeyCache",
    "TrustedKeyList",
    "get_trusted_key_cache",
    "sign",
    "verify",
    "verify_or_raise",
    "VerificationResult",
]
