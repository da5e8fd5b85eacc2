"""Update notifications rendered as HMI popups."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pynspanel import _constants as const
from pynspanel.channel import CommandChannel
from pynspanel.models.notification import Notification
from pynspanel.models.versions import FirmwareKind, VersionSnapshot

_logger = logging.getLogger(__name__)

DEFAULT_TEXTS: dict[str, str] = {
    "title": "Firmware update",
    "main.tasmota": "A new Tasmota firmware is available.",
    "main.berry-driver": "A new berry driver is available.",
    "main.hmi": "A new display firmware is available.",
    "current_version_prefix": "Current version: ",
    "new_version_prefix": "New version: ",
    "perform_update": "Do you want to install it now?",
    "yes": "Yes",
    "no": "No",
}


def update_notify_id(kind: FirmwareKind) -> str:
    return f"{const.UPDATE_NOTIFY_PREFIX}{kind.value}"


def _version_texts(kind: FirmwareKind, snapshot: VersionSnapshot) -> tuple[str, str]:
    current = snapshot.current.get(kind)
    latest = snapshot.latest.get(kind)
    if kind is FirmwareKind.HMI:
        current_text = (current.internal_version if current else None) or ""
        latest_text = f"{latest.version} ({latest.internal_version})" if latest else ""
        return current_text, latest_text
    return (current.version or "") if current else "", (latest.version or "") if latest else ""


def build_update_notification(
    kind: FirmwareKind,
    snapshot: VersionSnapshot,
    texts: Mapping[str, str] | None = None,
) -> Notification:
    """Build the yes/no prompt offering the update of one firmware component."""
    t = {**DEFAULT_TEXTS, **(texts or {})}
    current_text, latest_text = _version_texts(kind, snapshot)
    br = const.LUI_LINEBREAK
    text = (
        f"{t[f'main.{kind.value}']}{br}{br}"
        f"{t['current_version_prefix']}{current_text}{br}"
        f"{t['new_version_prefix']}{latest_text}{br}{br}"
        f"{t['perform_update']}"
    )
    return Notification(
        notify_id=update_notify_id(kind),
        heading=t["title"],
        heading_color=const.LUI_COLOR_RED,
        text=text,
        icon=const.UPDATE_NOTIFY_ICON,
        confirm_label=t["yes"],
        confirm_color=const.LUI_COLOR_GREEN,
        cancel_label=t["no"],
        cancel_color=const.LUI_COLOR_RED,
    )


def render_notification(notification: Notification) -> list[str]:
    """HMI messages that open the popup and fill in its content."""
    detail = const.LUI_DELIMITER.join(
        [
            const.LUI_CMD_ENTITY_UPDATE_DETAIL,
            notification.notify_id,
            notification.heading,
            notification.heading_color,
            notification.cancel_label,
            notification.cancel_color,
            notification.confirm_label,
            notification.confirm_color,
            notification.text,
            notification.text_color,
            str(notification.timeout),
            str(notification.font_size),
            notification.icon,
            notification.icon_color,
        ]
    )
    return [const.LUI_CMD_POPUP_NOTIFY, detail]


class PanelNotificationGateway:
    """Shows notifications on the panel itself.

    The answer arrives as ``event,buttonPress2,<notify_id>,notifyAction,<yes|no>``.
    """

    def __init__(self, channel: CommandChannel) -> None:
        self._channel = channel

    def show(self, notification: Notification) -> None:
        _logger.debug("Showing notification %s", notification.notify_id)
        for message in render_notification(notification):
            self._channel.send_raw(message)
