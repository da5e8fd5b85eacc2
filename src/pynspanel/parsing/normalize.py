"""Normalization helpers.

Centralizes tolerant parsing of the loosely typed values the panel sends.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

_TRUE_STRINGS = frozenset({"1", "true", "on", "yes", "y"})


def to_number(value: Any) -> int | float | None:
    """Parse *value* as a finite number.

    Integral strings stay ``int``; anything else numeric becomes ``float``.
    Returns ``None`` for empty strings, NaN, infinities (``"inf"``,
    ``"Infinity"``) and non-numerics such as ``"1_000"``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    text = str(value).strip()
    # no digit grouping, "1_000" is not a number
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        result = float(text)
    except ValueError:
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_float(value: Any) -> float | None:
    parsed = to_number(value)
    if parsed is None:
        return None
    return float(parsed)


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a Tasmota ``Time`` field (ISO 8601, usually without offset).

    Returns ``None`` for anything that is not a parseable timestamp.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def has_key(value: Any, key: str) -> bool:
    return isinstance(value, dict) and key in value
