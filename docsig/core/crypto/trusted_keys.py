"""
Time-bounded cache of the remote trusted signer registry.

A registry is a JSON document shaped as ``{"keys": [jwk, ...]}``. Each key is
indexed by its RFC 7638 thumbprint, which is what the verifier looks up for
the key that produced a signature.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import httpx

from docsig.core.config import get_settings
from docsig.core.crypto.keys import jwk_thumbprint
from docsig.core.errors import TrustedListUnavailableError
from docsig.core.http import fetch_json
from docsig.core.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]
FetchJSON = Callable[[str], Awaitable[dict[str, Any]]]

DEFAULT_MAX_AGE = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class TrustedKeyList:
    """Snapshot of the trusted registry.

    Attributes
    ----------
    keys:
        Registry entries keyed by key fingerprint.
    fetched_at:
        When the snapshot was fetched.
    sources:
        Registry URLs the snapshot was built from.
    """

    keys: dict[str, dict[str, Any]] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=_utcnow)
    sources: tuple[str, ...] = ()

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self.keys


def index_registry(document: dict[str, Any], source: str) -> dict[str, dict[str, Any]]:
    """Index a registry document's keys by fingerprint.

    Entries that are public JWKs are indexed by their thumbprint. Entries that
    only carry a precomputed ``thumbprint`` are indexed by that value.
    """
    indexed: dict[str, dict[str, Any]] = {}
    entries = document.get("keys")
    if not isinstance(entries, list):
        raise ValueError(f"Registry at {source} has no 'keys' list")
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("trusted_key_entry_skipped", source=source, reason="not an object")
            continue
        try:
            fingerprint = jwk_thumbprint(entry)
        except ValueError as exc:
            fingerprint = entry.get("thumbprint")
            if not isinstance(fingerprint, str) or not fingerprint:
                logger.warning(
                    "trusted_key_entry_skipped",
                    source=source,
                    kid=entry.get("kid"),
                    reason=str(exc),
                )
                continue
        indexed[fingerprint] = entry
    return indexed


class TrustedKeyCache:
    """
    Trusted registry client with a single cached snapshot.

    The snapshot is refetched once it is older than ``max_age``. There is no
    lock: concurrent refreshes may both fetch and the last one wins, which is
    harmless since both read the same registries.
    """

    def __init__(
        self,
        urls: Iterable[str],
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Clock = _utcnow,
        fetch: FetchJSON | None = None,
    ) -> None:
        self._urls = tuple(urls)
        self._max_age = max_age
        self._clock = clock
        self._fetch: FetchJSON = fetch or fetch_json
        self._list: TrustedKeyList | None = None

    @property
    def urls(self) -> tuple[str, ...]:
        return self._urls

    @property
    def cached(self) -> TrustedKeyList | None:
        """The current snapshot, without triggering a fetch."""
        return self._list

    def is_stale(self) -> bool:
        if self._list is None:
            return True
        return self._clock() - self._list.fetched_at > self._max_age

    async def refresh(self) -> TrustedKeyList:
        """Fetch every registry and replace the cached snapshot.

        Raises
        ------
        TrustedListUnavailableError
            If any registry cannot be fetched or parsed. The previous snapshot
            is left in place but is not served as a fallback.
        """
        keys: dict[str, dict[str, Any]] = {}
        for url in self._urls:
            try:
                document = await self._fetch(url)
                keys.update(index_registry(document, url))
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("trusted_keys_fetch_failed", url=url, error=str(exc))
                raise TrustedListUnavailableError(
                    f"Unable to fetch trusted key list from {url}: {exc}"
                ) from exc

        snapshot = TrustedKeyList(keys=keys, fetched_at=self._clock(), sources=self._urls)
        self._list = snapshot
        logger.info("trusted_keys_refreshed", key_count=len(keys), sources=list(self._urls))
        return snapshot

    async def get_trusted_keys(self) -> TrustedKeyList:
        """Return the cached snapshot, refreshing it first when missing or stale."""
        if self._list is None or self.is_stale():
            return await self.refresh()
        return self._list

    async def is_trusted(self, fingerprint: str | None) -> bool:
        """Check a key fingerprint against the registry.

        A missing fingerprint is untrusted and does not trigger a fetch.
        """
        if not fingerprint:
            return False
        trusted = await self.get_trusted_keys()
        return fingerprint in trusted


@lru_cache
def get_trusted_key_cache() -> TrustedKeyCache:
    """Process-wide cache built from settings."""
    settings = get_settings()
    return TrustedKeyCache(
        settings.trusted_list_urls_all,
        max_age=timedelta(seconds=settings.trusted_list_max_age_seconds),
    )
