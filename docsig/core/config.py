"""
Library configuration using Pydantic Settings.
All configuration is loaded from ``DOCSIG_``-prefixed environment variables with sensible defaults.
"""

import json
from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRUSTED_LIST_URL = "https://raw.githubusercontent.com/trellisfw/trusted-list/master/keys.json"


class Settings(BaseSettings):
    """
    Settings shared by the signer, the verifier and the trusted key cache.

    List-valued options accept either a comma-separated string or a JSON
    array string, so they can be set from a single environment variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCSIG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Core Settings
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ==========================================================================
    # Trusted Key Registry
    # ==========================================================================
    trusted_list_urls: str = Field(
        default=DEFAULT_TRUSTED_LIST_URL,
        description=(
            "Registry URLs serving a JSON document shaped as {\"keys\": [...]}. "
            "Supports comma-separated values or a JSON array string."
        ),
    )
    trusted_list_max_age_seconds: int = Field(
        default=86400,
        ge=1,
        description="Refetch the trusted key list once the cached copy is older than this",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for trusted list and jku fetches",
    )

    # ==========================================================================
    # Hashing
    # ==========================================================================
    reserved_keys: str = Field(
        default="_id,_meta,_rev",
        description="Top-level document keys excluded from hashing unless kept explicitly",
    )
    canonicalization: Literal["legacy-v1", "rfc8785"] = Field(
        default="legacy-v1",
        description="Canonical serialization used when computing hashes for new signatures",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def trusted_list_urls_all(self) -> list[str]:
        """All configured registry URLs, deduplicated in order."""
        deduped: list[str] = []
        for url in _parse_list(self.trusted_list_urls):
            if url not in deduped:
                deduped.append(url)
        return deduped

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reserved_keys_all(self) -> frozenset[str]:
        """Reserved top-level keys as a set."""
        return frozenset(_parse_list(self.reserved_keys))

    @model_validator(mode="after")
    def _validate_registry(self) -> Self:
        for url in self.trusted_list_urls_all:
            if not url.startswith(("https://", "http://")):
                raise ValueError(
                    f"trusted_list_urls entry {url!r} is not an http(s) URL. "
                    "Set DOCSIG_TRUSTED_LIST_URLS to a comma-separated list of registry URLs."
                )
        return self


def _parse_list(raw: str | None) -> list[str]:
    if raw is None:
        return []
    raw = raw.strip()
    if not raw:
        return []
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
    return [item.strip() for item in raw.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated environment variable parsing.
    """
    return Settings()
