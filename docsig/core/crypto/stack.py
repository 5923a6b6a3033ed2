"""Append-only signature stack stored under a document's ``signatures`` key.

Push and pop never mutate their input. Each returns a new top-level mapping
built around a deep copy of the remaining content, so a signed document and
the original recovered from it never share mutable state.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

SIGNATURES_KEY = "signatures"


def get_signatures(document: Any) -> list[str]:
    """Return the document's signature tokens, oldest first.

    Absent, empty and non-list values all read as no signatures.
    """
    if not isinstance(document, Mapping):
        return []
    signatures = document.get(SIGNATURES_KEY)
    if not isinstance(signatures, list):
        return []
    return list(signatures)


def _without_signatures(document: Mapping[str, Any]) -> dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in document.items() if k != SIGNATURES_KEY}


def _require_signature_list(document: Mapping[str, Any]) -> None:
    signatures = document.get(SIGNATURES_KEY)
    if SIGNATURES_KEY in document and not isinstance(signatures, list):
        raise TypeError(
            f"Document field '{SIGNATURES_KEY}' must be a list of signature tokens, "
            f"got {type(signatures).__name__}. Rename the field before signing."
        )


def normalize_signatures(document: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``document`` with an empty ``signatures`` list removed.

    Raises ``TypeError`` if ``signatures`` is present but not a list.
    """
    _require_signature_list(document)
    result = _without_signatures(document)
    signatures = get_signatures(document)
    if signatures:
        result[SIGNATURES_KEY] = signatures
    return result


def push_signature(document: Mapping[str, Any], token: str) -> dict[str, Any]:
    """Return a copy of ``document`` with ``token`` appended to its signatures."""
    if not isinstance(document, Mapping):
        raise TypeError(
            f"Only JSON objects can carry signatures, got {type(document).__name__}"
        )
    _require_signature_list(document)
    result = _without_signatures(document)
    result[SIGNATURES_KEY] = [*get_signatures(document), token]
    return result


def pop_signature(document: Any) -> Any:
    """Return a copy of ``document`` with its most recent signature removed.

    The ``signatures`` key is dropped entirely once the last signature is
    removed. A document without signatures comes back as an unchanged copy.
    """
    signatures = get_signatures(document)
    if not signatures:
        return copy.deepcopy(document)
    result = _without_signatures(document)
    if len(signatures) > 1:
        result[SIGNATURES_KEY] = signatures[:-1]
    return result
