"""Notification popup model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from pynspanel import _constants as const


class Notification(BaseModel):
    """A yes/no prompt shown on the panel.

    Colours are RGB565 values encoded as decimal strings, as the HMI
    expects them.
    """

    model_config = ConfigDict(frozen=True)

    notify_id: str
    heading: str
    text: str
    heading_color: str = const.LUI_COLOR_WHITE
    text_color: str = const.LUI_COLOR_WHITE
    icon: str = ""
    icon_color: str = const.LUI_COLOR_WHITE
    confirm_label: str = "Yes"
    confirm_color: str = const.LUI_COLOR_GREEN
    cancel_label: str = "No"
    cancel_color: str = const.LUI_COLOR_RED
    timeout: int = 0
    """Seconds before the popup closes by itself, ``0`` keeps it open."""
    font_size: int = 0

    @field_validator("notify_id")
    @classmethod
    def _non_empty_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("notify_id must be non-empty")
        return value
