"""Firmware version models and acquisition flags."""

from __future__ import annotations

import dataclasses
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class FirmwareKind(StrEnum):
    """Independently updatable firmware components of the panel.

    Also used as the update task type held by the orchestrator.
    """

    TASMOTA = "tasmota"
    BERRY_DRIVER = "berry-driver"
    HMI = "hmi"


class VersionInfo(BaseModel):
    """A single reported or published firmware version."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    internal_version: str | None = None
    """Display firmware build number (HMI only)."""
    model: str | None = None
    """Panel model reported by the HMI on startup (e.g. ``"eu"``)."""


class PanelVersions(BaseModel):
    """One version record per firmware kind."""

    model_config = ConfigDict(frozen=True)

    tasmota: VersionInfo | None = None
    berry_driver: VersionInfo | None = None
    hmi: VersionInfo | None = None

    def get(self, kind: FirmwareKind) -> VersionInfo | None:
        if kind is FirmwareKind.TASMOTA:
            return self.tasmota
        if kind is FirmwareKind.BERRY_DRIVER:
            return self.berry_driver
        return self.hmi


@dataclasses.dataclass(slots=True)
class AcquisitionFlags:
    """Independent facts about version discovery.

    The ``*_update_available`` flags are only meaningful once both
    ``*_current_known`` and ``*_latest_known`` hold for that firmware kind.
    """

    tasmota_current_known: bool = False
    tasmota_latest_known: bool = False
    berry_current_known: bool = False
    berry_latest_known: bool = False
    hmi_current_known: bool = False
    hmi_latest_known: bool = False
    tasmota_update_available: bool = False
    berry_update_available: bool = False
    hmi_update_available: bool = False

    @property
    def all_known(self) -> bool:
        return (
            self.tasmota_current_known
            and self.tasmota_latest_known
            and self.berry_current_known
            and self.berry_latest_known
            and self.hmi_current_known
            and self.hmi_latest_known
        )

    def update_available(self, kind: FirmwareKind) -> bool:
        if kind is FirmwareKind.TASMOTA:
            return self.tasmota_update_available
        if kind is FirmwareKind.BERRY_DRIVER:
            return self.berry_update_available
        return self.hmi_update_available

    def missing(self) -> list[str]:
        """Names of the ``*_known`` flags that are still unset."""
        return [
            field.name
            for field in dataclasses.fields(self)
            if field.name.endswith("_known") and not getattr(self, field.name)
        ]

    def copy(self) -> AcquisitionFlags:
        return dataclasses.replace(self)


@dataclasses.dataclass(frozen=True, slots=True)
class VersionSnapshot:
    """Current and latest versions as seen at the end of one acquisition round."""

    current: PanelVersions
    latest: PanelVersions
    flags: AcquisitionFlags

    def update_available(self, kind: FirmwareKind) -> bool:
        return self.flags.update_available(kind)
