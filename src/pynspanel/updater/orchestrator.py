"""Firmware update lifecycle.

Per firmware kind the lifecycle is ``idle -> acquiring -> (awaiting
confirmation | auto proceeding) -> updating -> idle``. All kinds share one
"update in progress" latch so at most one update command sequence is
outstanding. Confirmed updates wait on a last-in-first-out task stack.

The orchestrator is not thread-safe: every method must run on the event
loop thread (the MQTT runtime hands events over with
``call_soon_threadsafe``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from pynspanel import _constants as const
from pynspanel.channel import CommandChannel, NotificationGateway
from pynspanel.config import PanelConfig
from pynspanel.exceptions import VersionAcquisitionError
from pynspanel.models.events import FirmwareEvent, UpdateStatus
from pynspanel.models.versions import FirmwareKind, VersionInfo, VersionSnapshot
from pynspanel.notifications import build_update_notification
from pynspanel.updater.acquisition import VersionAcquisitionCoordinator

_logger = logging.getLogger(__name__)

# Only the first available kind in this order is offered per check.
_NOTIFY_PRIORITY = (FirmwareKind.HMI, FirmwareKind.BERRY_DRIVER, FirmwareKind.TASMOTA)
# Pushed in this order, so the stack pops them in notification priority order.
_AUTO_UPDATE_ORDER = (FirmwareKind.TASMOTA, FirmwareKind.BERRY_DRIVER, FirmwareKind.HMI)


class UpdateOrchestrator:
    """Checks for, confirms and runs firmware updates on one panel."""

    def __init__(
        self,
        *,
        config: PanelConfig,
        channel: CommandChannel,
        gateway: NotificationGateway,
        coordinator: VersionAcquisitionCoordinator,
        texts: Mapping[str, str] | None = None,
        on_update_result: Callable[[FirmwareEvent], None] | None = None,
    ) -> None:
        self._config = config
        self._channel = channel
        self._gateway = gateway
        self._coordinator = coordinator
        self._texts = texts
        self._on_update_result = on_update_result
        self._update_in_progress = False
        self._tasks: list[FirmwareKind] = []
        self._snapshot: VersionSnapshot | None = None

    @property
    def update_in_progress(self) -> bool:
        return self._update_in_progress

    @property
    def pending_tasks(self) -> tuple[FirmwareKind, ...]:
        """Queued update tasks, bottom of the stack first."""
        return tuple(self._tasks)

    @property
    def snapshot(self) -> VersionSnapshot | None:
        """Result of the last successful version check."""
        return self._snapshot

    # ------------------------------------------------------------------
    # Version check
    # ------------------------------------------------------------------

    async def check_for_updates(self) -> VersionSnapshot:
        """Acquire versions, then offer or start the available updates.

        With ``auto_update`` disabled, one notification is shown for the
        highest-priority available update (HMI, berry driver, Tasmota).
        With ``auto_update`` enabled every available update is queued
        without confirmation.

        Raises
        ------
        VersionAcquisitionError
            When version discovery timed out.
        """
        try:
            snapshot = await self._coordinator.acquire()
        except VersionAcquisitionError as exc:
            _logger.error("Could not acquire version data: %s", exc)
            raise
        self._snapshot = snapshot

        if not self._config.auto_update:
            for kind in _NOTIFY_PRIORITY:
                if snapshot.update_available(kind):
                    self._gateway.show(build_update_notification(kind, snapshot, self._texts))
                    break
            return snapshot

        for kind in _AUTO_UPDATE_ORDER:
            if snapshot.update_available(kind):
                _logger.info("Queueing automatic %s update", kind.value)
                self._tasks.append(kind)
        self.process_update_tasks()
        return snapshot

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def set_hmi_version(self, version: VersionInfo | None) -> None:
        self._coordinator.set_hmi_version(version)

    def on_firmware_event(self, event: FirmwareEvent) -> None:
        if event.event == "version":
            if event.firmware is FirmwareKind.TASMOTA:
                self._coordinator.set_tasmota_version(event.version)
            elif event.firmware is FirmwareKind.BERRY_DRIVER:
                self._coordinator.set_berry_driver_version(event.version)
            return

        if event.event != "update":
            return

        if event.status is UpdateStatus.SUCCESS:
            _logger.info("%s update finished", event.firmware.value)
            self._update_in_progress = False
            self._report(event)
            self.process_update_tasks()
        elif event.status is UpdateStatus.FAILED:
            # Latch stays set until a later success or reset().
            _logger.warning("%s update failed: %s", event.firmware.value, event.status_msg)
            self._report(event)

    def on_confirmation(self, notify_id: str | None, action: str | None) -> None:
        """Handle the user's answer to an update notification."""
        if not notify_id or action != const.LUI_NOTIFY_ACTION_YES:
            return
        if not notify_id.startswith(const.UPDATE_NOTIFY_PREFIX):
            return
        try:
            kind = FirmwareKind(notify_id[len(const.UPDATE_NOTIFY_PREFIX) :])
        except ValueError:
            _logger.debug("Ignoring confirmation for unknown firmware %r", notify_id)
            return
        self.request_update(kind)

    def _report(self, event: FirmwareEvent) -> None:
        if self._on_update_result is not None:
            self._on_update_result(event)

    # ------------------------------------------------------------------
    # Task processing
    # ------------------------------------------------------------------

    def request_update(self, kind: FirmwareKind) -> None:
        """Queue an update of *kind* and try to start it."""
        self._tasks.append(kind)
        self.process_update_tasks()

    def process_update_tasks(self) -> None:
        if not self._tasks:
            return
        kind = self._tasks.pop()
        if self._update_in_progress:
            _logger.debug("Update in progress, deferring %s", kind.value)
            self._tasks.append(kind)
            return

        self._update_in_progress = True
        if kind is FirmwareKind.TASMOTA:
            self._update_tasmota()
        elif kind is FirmwareKind.BERRY_DRIVER:
            self._update_berry_driver()
        else:
            self._update_hmi()

    def reset(self) -> None:
        """Release a stalled latch and drop queued tasks."""
        _logger.info("Resetting updater, dropping %d queued tasks", len(self._tasks))
        self._update_in_progress = False
        self._tasks.clear()

    def _update_tasmota(self) -> None:
        _logger.info("Upgrading Tasmota from %s", self._config.tasmota_ota_url)
        self._channel.send(const.CMD_OTAURL, self._config.tasmota_ota_url)
        self._channel.send(const.CMD_UPGRADE, const.PARAM_UPGRADE_START)

    def _update_berry_driver(self) -> None:
        _logger.info("Updating berry driver from %s", self._config.berry_driver_url)
        backlog = (
            f"{const.CMD_UPDATE_DRIVER} {self._config.berry_driver_url}; "
            f"{const.CMD_RESTART} {const.PARAM_RESTART_SAVE_TO_FLASH}"
        )
        self._channel.send(const.CMD_BACKLOG, backlog)

    def _update_hmi(self) -> None:
        _logger.info("Flashing HMI firmware from %s", self._config.hmi_firmware_url)
        self._channel.send(const.CMD_FLASH_NEXTION, self._config.hmi_firmware_url)
