"""Canonical serialization used as the hashing input for document signatures.

Two modes are supported:

- ``legacy-v1``: sorted keys, no whitespace, strings wrapped in quotes
  verbatim. Every signature produced before RFC 8785 support uses this mode,
  so it stays the default.
- ``rfc8785``: JSON Canonicalization Scheme (JCS), which escapes strings
  properly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import rfc8785

from docsig.core.errors import SerializationError
from docsig.core.logging import get_logger

logger = get_logger(__name__)

CANONICALIZATION_LEGACY_V1 = "legacy-v1"
CANONICALIZATION_RFC8785 = "rfc8785"
CANONICALIZATION_MODES = frozenset({CANONICALIZATION_LEGACY_V1, CANONICALIZATION_RFC8785})

# Above this magnitude integral floats switch to exponent notation in JSON
# number formatting, so they are rendered with repr like fractional values.
_MAX_PLAIN_INTEGRAL_FLOAT = 1e21


def serialize(value: Any) -> str:
    """Return the ``legacy-v1`` canonical text form of a JSON-compatible value.

    Object keys are sorted by code point at every nesting level and no
    whitespace is emitted. Strings are not escaped: a string containing a
    double quote can collide with differently structured input.

    Raises
    ------
    SerializationError
        For NaN/Infinity, non-string object keys, or non-JSON types.
    """
    if value is None:
        return "null"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _serialize_float(value)
    if isinstance(value, str):
        return '"' + value + '"'
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(serialize(item) for item in value) + "]"
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise SerializationError(
                    f"Object key {key!r} is not a string. JSON objects only have string keys."
                )
        return (
            "{"
            + ",".join(f'"{key}":{serialize(value[key])}' for key in sorted(value))
            + "}"
        )
    raise SerializationError(
        f"Cannot serialize value of type {type(value).__name__}. "
        "Convert it to a JSON-compatible type before hashing."
    )


def _serialize_float(value: float) -> str:
    if math.isnan(value) or math.isinf(value):
        raise SerializationError(f"Cannot serialize non-finite number {value!r}.")
    if value.is_integer() and abs(value) < _MAX_PLAIN_INTEGRAL_FLOAT:
        return str(int(value))
    logger.warning(
        "fractional_number_serialized",
        value=value,
        hint="Floating point values do not hash consistently across systems. Use a string.",
    )
    return _ecmascript_number(value)


def _ecmascript_number(value: float) -> str:
    """Format a float the way ECMAScript's ``Number#toString`` does.

    Digits are the shortest round-trip digits from ``repr``. Plain notation
    is used for decimal exponents from -6 up to 21, exponent notation
    without zero padding otherwise (``1e-7``, ``1.5e+22``).
    """
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = k + int(exponent)
    prefix = "-" if value < 0 else ""
    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        text = f"{mantissa}e{n - 1:+d}"
    return prefix + text


def canonicalize_jcs_bytes(data: Any) -> bytes:
    """Return RFC 8785 (JCS) canonical bytes."""
    try:
        canonical = rfc8785.dumps(data)
    except (rfc8785.CanonicalizationError, TypeError, ValueError) as exc:
        raise SerializationError(f"RFC 8785 canonicalization failed: {exc}") from exc
    if isinstance(canonical, bytes):
        return canonical
    return str(canonical).encode("utf-8")


def canonicalize(data: Any, *, canonicalization: str = CANONICALIZATION_LEGACY_V1) -> bytes:
    """Return canonical UTF-8 bytes for the selected canonicalization mode."""
    if canonicalization == CANONICALIZATION_LEGACY_V1:
        return serialize(data).encode("utf-8")
    if canonicalization == CANONICALIZATION_RFC8785:
        return canonicalize_jcs_bytes(data)
    raise ValueError(f"Unsupported canonicalization mode: {canonicalization}")
