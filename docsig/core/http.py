"""Shared JSON-over-HTTP fetch used for trusted registries and jku key sets."""

from __future__ import annotations

from typing import Any, cast

import httpx

from docsig.core.config import get_settings


async def fetch_json(url: str, *, client: httpx.AsyncClient | None = None) -> dict[str, Any]:
    """GET ``url`` and return its JSON object body.

    Raises ``httpx.HTTPError`` for transport and status failures and
    ``ValueError`` when the body is not a JSON object.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=get_settings().http_timeout_seconds) as owned:
            return await fetch_json(url, client=owned)

    response = await client.get(url)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from {url}, got {type(data).__name__}")
    return cast(dict[str, Any], data)
