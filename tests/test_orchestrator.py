from __future__ import annotations

import logging
from typing import Any

import pytest

from pynspanel.config import PanelConfig
from pynspanel.exceptions import VersionAcquisitionError
from pynspanel.models.events import FirmwareEvent, UpdateStatus
from pynspanel.models.notification import Notification
from pynspanel.models.versions import (
    AcquisitionFlags,
    FirmwareKind,
    PanelVersions,
    VersionInfo,
    VersionSnapshot,
)
from pynspanel.updater.orchestrator import UpdateOrchestrator

_OTA_URL = "http://ota.example/tasmota32-nspanel.bin"
_BERRY_URL = "http://raw.example/autoexec.be"
_TFT_URL = "http://tft.example/lui-release.tft"


class _RecordingChannel:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, command: str, payload: str) -> None:
        self.sent.append((command, payload))

    def send_raw(self, payload: str) -> None:  # pragma: no cover
        self.sent.append(("CustomSend", payload))


class _RecordingGateway:
    def __init__(self) -> None:
        self.shown: list[Notification] = []

    def show(self, notification: Notification) -> None:
        self.shown.append(notification)


class _StubCoordinator:
    def __init__(self, snapshot: VersionSnapshot | None = None, error: Exception | None = None) -> None:
        self.snapshot = snapshot
        self.error = error
        self.reported: list[tuple[str, Any]] = []

    async def acquire(self) -> VersionSnapshot:
        if self.error is not None:
            raise self.error
        assert self.snapshot is not None
        return self.snapshot

    def set_tasmota_version(self, version: str | None) -> None:
        self.reported.append(("tasmota", version))

    def set_berry_driver_version(self, version: str | None) -> None:
        self.reported.append(("berry", version))

    def set_hmi_version(self, version: VersionInfo | None) -> None:
        self.reported.append(("hmi", version))


def _snapshot(*, tasmota: bool = False, berry: bool = False, hmi: bool = False) -> VersionSnapshot:
    flags = AcquisitionFlags(
        tasmota_current_known=True,
        tasmota_latest_known=True,
        berry_current_known=True,
        berry_latest_known=True,
        hmi_current_known=True,
        hmi_latest_known=True,
        tasmota_update_available=tasmota,
        berry_update_available=berry,
        hmi_update_available=hmi,
    )
    return VersionSnapshot(
        current=PanelVersions(
            tasmota=VersionInfo(version="13.1.0"),
            berry_driver=VersionInfo(version="8"),
            hmi=VersionInfo(internal_version="52", model="eu"),
        ),
        latest=PanelVersions(
            tasmota=VersionInfo(version="13.2.0"),
            berry_driver=VersionInfo(version="9"),
            hmi=VersionInfo(version="4.3.3", internal_version="53"),
        ),
        flags=flags,
    )


def _orchestrator(
    coordinator: _StubCoordinator | None = None,
    *,
    auto_update: bool = False,
    results: list[FirmwareEvent] | None = None,
) -> tuple[UpdateOrchestrator, _RecordingChannel, _RecordingGateway]:
    config = PanelConfig(
        topic="nspanel",
        auto_update=auto_update,
        tasmota_ota_url=_OTA_URL,
        berry_driver_url=_BERRY_URL,
        hmi_firmware_url=_TFT_URL,
    )
    channel = _RecordingChannel()
    gateway = _RecordingGateway()
    orchestrator = UpdateOrchestrator(
        config=config,
        channel=channel,
        gateway=gateway,
        coordinator=coordinator or _StubCoordinator(_snapshot()),  # type: ignore[arg-type]
        on_update_result=results.append if results is not None else None,
    )
    return orchestrator, channel, gateway


def _update_result(kind: FirmwareKind, status: UpdateStatus, msg: str | None = None) -> FirmwareEvent:
    return FirmwareEvent(firmware=kind, source=kind.value, event="update", status=status, status_msg=msg)


# ------------------------------------------------------------------
# Version check
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_notification_prefers_hmi_over_other_kinds() -> None:
    orchestrator, channel, gateway = _orchestrator(_StubCoordinator(_snapshot(tasmota=True, berry=True, hmi=True)))

    snapshot = await orchestrator.check_for_updates()

    assert orchestrator.snapshot is snapshot
    assert [n.notify_id for n in gateway.shown] == ["nspanel.update.hmi"]
    assert "4.3.3 (53)" in gateway.shown[0].text
    assert channel.sent == []
    assert orchestrator.update_in_progress is False


@pytest.mark.asyncio
async def test_notification_berry_before_tasmota() -> None:
    orchestrator, _, gateway = _orchestrator(_StubCoordinator(_snapshot(tasmota=True, berry=True)))

    await orchestrator.check_for_updates()

    assert [n.notify_id for n in gateway.shown] == ["nspanel.update.berry-driver"]


@pytest.mark.asyncio
async def test_no_notification_without_updates() -> None:
    orchestrator, channel, gateway = _orchestrator()

    await orchestrator.check_for_updates()

    assert gateway.shown == []
    assert channel.sent == []


@pytest.mark.asyncio
async def test_auto_update_starts_hmi_first_and_queues_the_rest() -> None:
    orchestrator, channel, gateway = _orchestrator(
        _StubCoordinator(_snapshot(tasmota=True, berry=True, hmi=True)), auto_update=True
    )

    await orchestrator.check_for_updates()

    assert gateway.shown == []
    assert channel.sent == [("FlashNextion", _TFT_URL)]
    assert orchestrator.update_in_progress is True
    assert orchestrator.pending_tasks == (FirmwareKind.TASMOTA, FirmwareKind.BERRY_DRIVER)


@pytest.mark.asyncio
async def test_auto_update_runs_queue_to_completion() -> None:
    results: list[FirmwareEvent] = []
    orchestrator, channel, _ = _orchestrator(
        _StubCoordinator(_snapshot(tasmota=True, berry=True, hmi=True)), auto_update=True, results=results
    )

    await orchestrator.check_for_updates()
    orchestrator.on_firmware_event(_update_result(FirmwareKind.HMI, UpdateStatus.SUCCESS))
    orchestrator.on_firmware_event(_update_result(FirmwareKind.BERRY_DRIVER, UpdateStatus.SUCCESS))
    orchestrator.on_firmware_event(_update_result(FirmwareKind.TASMOTA, UpdateStatus.SUCCESS))

    assert channel.sent == [
        ("FlashNextion", _TFT_URL),
        ("Backlog", f"UpdateDriverVersion {_BERRY_URL}; Restart 1"),
        ("OtaUrl", _OTA_URL),
        ("Upgrade", "1"),
    ]
    assert [r.firmware for r in results] == [FirmwareKind.HMI, FirmwareKind.BERRY_DRIVER, FirmwareKind.TASMOTA]
    assert orchestrator.update_in_progress is False
    assert orchestrator.pending_tasks == ()


@pytest.mark.asyncio
async def test_acquisition_timeout_is_logged_and_raised(caplog: pytest.LogCaptureFixture) -> None:
    error = VersionAcquisitionError("timed out", flags=AcquisitionFlags(), polls=10)
    orchestrator, channel, gateway = _orchestrator(_StubCoordinator(error=error))

    with caplog.at_level(logging.ERROR, logger="pynspanel.updater.orchestrator"):
        with pytest.raises(VersionAcquisitionError):
            await orchestrator.check_for_updates()

    assert any(record.levelno == logging.ERROR for record in caplog.records)
    assert orchestrator.snapshot is None
    assert gateway.shown == []
    assert channel.sent == []


# ------------------------------------------------------------------
# Confirmation
# ------------------------------------------------------------------


def test_confirmation_yes_starts_update() -> None:
    orchestrator, channel, _ = _orchestrator()

    orchestrator.on_confirmation("nspanel.update.tasmota", "yes")

    assert channel.sent == [("OtaUrl", _OTA_URL), ("Upgrade", "1")]
    assert orchestrator.update_in_progress is True


def test_confirmation_berry_driver_uses_backlog() -> None:
    orchestrator, channel, _ = _orchestrator()

    orchestrator.on_confirmation("nspanel.update.berry-driver", "yes")

    assert channel.sent == [("Backlog", f"UpdateDriverVersion {_BERRY_URL}; Restart 1")]


@pytest.mark.parametrize(
    ("notify_id", "action"),
    [
        ("nspanel.update.hmi", "no"),
        ("nspanel.update.hmi", None),
        ("other.notification", "yes"),
        ("nspanel.update.bootloader", "yes"),
        (None, "yes"),
        ("", "yes"),
    ],
)
def test_confirmation_ignored(notify_id: str | None, action: str | None) -> None:
    orchestrator, channel, _ = _orchestrator()

    orchestrator.on_confirmation(notify_id, action)

    assert channel.sent == []
    assert orchestrator.pending_tasks == ()
    assert orchestrator.update_in_progress is False


def test_second_confirmation_waits_for_the_first_update() -> None:
    orchestrator, channel, _ = _orchestrator()

    orchestrator.on_confirmation("nspanel.update.hmi", "yes")
    orchestrator.on_confirmation("nspanel.update.tasmota", "yes")

    assert channel.sent == [("FlashNextion", _TFT_URL)]
    assert orchestrator.pending_tasks == (FirmwareKind.TASMOTA,)

    orchestrator.on_firmware_event(_update_result(FirmwareKind.HMI, UpdateStatus.SUCCESS))

    assert channel.sent[1:] == [("OtaUrl", _OTA_URL), ("Upgrade", "1")]
    assert orchestrator.pending_tasks == ()


def test_berry_driver_requested_during_tasmota_update_runs_next() -> None:
    orchestrator, channel, _ = _orchestrator()

    orchestrator.request_update(FirmwareKind.TASMOTA)
    orchestrator.request_update(FirmwareKind.BERRY_DRIVER)
    assert orchestrator.pending_tasks == (FirmwareKind.BERRY_DRIVER,)

    orchestrator.on_firmware_event(_update_result(FirmwareKind.TASMOTA, UpdateStatus.SUCCESS))

    assert [command for command, _ in channel.sent] == ["OtaUrl", "Upgrade", "Backlog"]
    assert orchestrator.update_in_progress is True
    assert orchestrator.pending_tasks == ()


def test_pending_tasks_pop_last_in_first_out() -> None:
    orchestrator, channel, _ = _orchestrator()

    orchestrator.on_confirmation("nspanel.update.hmi", "yes")
    orchestrator.on_confirmation("nspanel.update.tasmota", "yes")
    orchestrator.on_confirmation("nspanel.update.berry-driver", "yes")
    assert orchestrator.pending_tasks == (FirmwareKind.TASMOTA, FirmwareKind.BERRY_DRIVER)

    orchestrator.on_firmware_event(_update_result(FirmwareKind.HMI, UpdateStatus.SUCCESS))

    assert channel.sent[-1][0] == "Backlog"
    assert orchestrator.pending_tasks == (FirmwareKind.TASMOTA,)


# ------------------------------------------------------------------
# Update results
# ------------------------------------------------------------------


def test_failed_update_keeps_latch_and_reports(caplog: pytest.LogCaptureFixture) -> None:
    results: list[FirmwareEvent] = []
    orchestrator, channel, _ = _orchestrator(results=results)

    orchestrator.on_confirmation("nspanel.update.tasmota", "yes")
    orchestrator.on_confirmation("nspanel.update.hmi", "yes")
    with caplog.at_level(logging.WARNING, logger="pynspanel.updater.orchestrator"):
        orchestrator.on_firmware_event(
            _update_result(FirmwareKind.TASMOTA, UpdateStatus.FAILED, "Not enough space")
        )

    assert orchestrator.update_in_progress is True
    assert orchestrator.pending_tasks == (FirmwareKind.HMI,)
    assert len(channel.sent) == 2
    assert [r.status_msg for r in results] == ["Not enough space"]
    assert any("Not enough space" in record.getMessage() for record in caplog.records)


def test_reset_releases_latch_and_drops_tasks() -> None:
    orchestrator, channel, _ = _orchestrator()
    orchestrator.on_confirmation("nspanel.update.tasmota", "yes")
    orchestrator.on_confirmation("nspanel.update.hmi", "yes")
    orchestrator.on_firmware_event(_update_result(FirmwareKind.TASMOTA, UpdateStatus.FAILED))

    orchestrator.reset()

    assert orchestrator.update_in_progress is False
    assert orchestrator.pending_tasks == ()

    orchestrator.on_confirmation("nspanel.update.hmi", "yes")
    assert channel.sent[-1] == ("FlashNextion", _TFT_URL)


def test_version_events_feed_the_coordinator() -> None:
    coordinator = _StubCoordinator(_snapshot())
    orchestrator, channel, _ = _orchestrator(coordinator)

    orchestrator.on_firmware_event(
        FirmwareEvent(firmware=FirmwareKind.TASMOTA, event="version", version="13.1.0(tasmota32)")
    )
    orchestrator.on_firmware_event(FirmwareEvent(firmware=FirmwareKind.BERRY_DRIVER, event="version", version="8"))
    orchestrator.set_hmi_version(VersionInfo(internal_version="53"))

    assert coordinator.reported == [
        ("tasmota", "13.1.0(tasmota32)"),
        ("berry", "8"),
        ("hmi", VersionInfo(internal_version="53")),
    ]
    assert channel.sent == []


def test_ota_url_echo_is_ignored() -> None:
    results: list[FirmwareEvent] = []
    orchestrator, _, _ = _orchestrator(results=results)
    orchestrator.on_confirmation("nspanel.update.tasmota", "yes")

    orchestrator.on_firmware_event(FirmwareEvent(firmware=FirmwareKind.TASMOTA, event="otaUrl", data=_OTA_URL))

    assert orchestrator.update_in_progress is True
    assert results == []
