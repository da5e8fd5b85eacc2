"""Data models for NSPanel events, versions and notifications."""

from pynspanel.models.events import (
    AnyEvent,
    EventKind,
    FirmwareEvent,
    HardwareEvent,
    PanelEvent,
    SensorEvent,
    UiEvent,
    UnknownEvent,
    UpdateStatus,
    parse_event,
)
from pynspanel.models.notification import Notification
from pynspanel.models.versions import (
    AcquisitionFlags,
    FirmwareKind,
    PanelVersions,
    VersionInfo,
    VersionSnapshot,
)

__all__ = [
    "AcquisitionFlags",
    "AnyEvent",
    "EventKind",
    "FirmwareEvent",
    "FirmwareKind",
    "HardwareEvent",
    "Notification",
    "PanelEvent",
    "PanelVersions",
    "SensorEvent",
    "UiEvent",
    "UnknownEvent",
    "UpdateStatus",
    "VersionInfo",
    "VersionSnapshot",
    "parse_event",
]
