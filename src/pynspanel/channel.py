"""Structural interfaces of the panel's egress paths.

The updater only depends on these protocols, so tests can pass plain
recording doubles while production code uses the MQTT runtime and the
panel notification gateway.
"""

from __future__ import annotations

from typing import Protocol

from pynspanel.models.notification import Notification


class CommandChannel(Protocol):
    """Fire-and-forget command path to one physical panel."""

    def send(self, command: str, payload: str) -> None:
        """Send a named Tasmota/driver command with its argument."""
        ...

    def send_raw(self, payload: str) -> None:
        """Send a bare HMI message (e.g. ``pageType~pageStartup``)."""
        ...


class NotificationGateway(Protocol):
    """Presents a yes/no prompt to the user.

    The user's choice is reported back asynchronously through
    ``UpdateOrchestrator.on_confirmation(notify_id, action)``.
    """

    def show(self, notification: Notification) -> None:
        ...
