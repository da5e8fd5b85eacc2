"""pynspanel - Async Python decoder and firmware updater for Sonoff NSPanel."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pynspanel")
except PackageNotFoundError:
    __version__ = "0+local"
from pynspanel.channel import CommandChannel, NotificationGateway
from pynspanel.client import PanelClient
from pynspanel.config import PanelConfig
from pynspanel.exceptions import (
    PanelConfigError,
    PanelError,
    PanelTransportError,
    VersionAcquisitionError,
)
from pynspanel.models import (
    AcquisitionFlags,
    EventKind,
    FirmwareEvent,
    FirmwareKind,
    HardwareEvent,
    Notification,
    PanelEvent,
    PanelVersions,
    SensorEvent,
    UiEvent,
    UnknownEvent,
    UpdateStatus,
    VersionInfo,
    VersionSnapshot,
    parse_event,
)
from pynspanel.parsing import action_code, decode, decode_topic_payload
from pynspanel.updater import UpdateOrchestrator, VersionAcquisitionCoordinator

__all__ = [
    "__version__",
    "AcquisitionFlags",
    "CommandChannel",
    "EventKind",
    "FirmwareEvent",
    "FirmwareKind",
    "HardwareEvent",
    "Notification",
    "NotificationGateway",
    "PanelClient",
    "PanelConfig",
    "PanelConfigError",
    "PanelError",
    "PanelEvent",
    "PanelTransportError",
    "PanelVersions",
    "SensorEvent",
    "UiEvent",
    "UnknownEvent",
    "UpdateOrchestrator",
    "UpdateStatus",
    "VersionAcquisitionCoordinator",
    "VersionAcquisitionError",
    "VersionInfo",
    "VersionSnapshot",
    "action_code",
    "decode",
    "decode_topic_payload",
    "parse_event",
]
