"""Button action names to press counts."""

from __future__ import annotations

from typing import Any

_ACTION_CODES: dict[str, int] = {
    "single": 1,
    "double": 2,
    "triple": 3,
    "quad": 4,
    "penta": 5,
}


def action_code(action: Any) -> int | None:
    """Return the press count for a Tasmota button *action* (case-insensitive).

    Unknown actions map to ``None``, never to ``0``.
    """
    if not isinstance(action, str):
        return None
    return _ACTION_CODES.get(action.strip().lower())
