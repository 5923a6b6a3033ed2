"""Pydantic schemas for signature token payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SignerInfo(BaseModel):
    """Who applied a signature, as shown to a human reviewer."""

    name: str
    url: str | None = None

    model_config = ConfigDict(extra="allow")


class SignaturePayload(BaseModel):
    """Claims carried inside every signature token."""

    version: str
    iat: int = Field(description="Signing time in unix seconds")
    hashinfo: dict[str, Any]
    signer: SignerInfo | None = None
    type: str | None = Field(
        default=None,
        description="Kind of signature, e.g. 'original' or 'transcription'",
    )

    model_config = ConfigDict(extra="allow")

    def to_claims(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
