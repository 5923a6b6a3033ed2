"""Exceptions raised by signing and verification.

Negative verification outcomes (untrusted signer, invalid signature, changed
content) are reported on :class:`~docsig.core.crypto.verifier.VerificationResult`
and never raised. Only structurally unusable input ends up here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docsig.core.crypto.verifier import VerificationResult


class DocsigError(Exception):
    """Base class for all docsig errors."""


class NoSignatureError(DocsigError):
    """Raised when verifying a document that carries no signatures."""


class MissingKeyMaterialError(DocsigError):
    """Raised when signing without a usable private key or key locator."""


class MalformedTokenError(DocsigError):
    """Raised when a signature token cannot be decoded into header and payload."""


class SigningError(DocsigError):
    """Raised when the JWS primitive fails to produce a token."""


class SerializationError(DocsigError, ValueError):
    """Raised when a value has no deterministic canonical form."""


class TrustedListUnavailableError(DocsigError):
    """Raised when the trusted key registry cannot be fetched or parsed."""


class VerificationFailedError(DocsigError):
    """Raised by :func:`~docsig.core.crypto.verifier.verify_or_raise` when a check fails."""

    def __init__(self, result: VerificationResult) -> None:
        self.result = result
        failed = [
            name
            for name, passed in (
                ("valid", result.valid),
                ("trusted", result.trusted or result.allow_untrusted),
                ("unchanged", result.unchanged),
            )
            if not passed
        ]
        super().__init__(f"Signature verification failed: {', '.join(failed)}")
