"""Typed panel events.

Every inbound payload is decoded into exactly one of these immutable
models (or a list of them for multi-field Tasmota messages). Consumers
dispatch on ``kind`` and then on ``event`` / ``event2``.

``AnyEvent`` is a discriminated union on ``kind`` so an event that was
dumped with ``model_dump()`` can be rebuilt with :func:`parse_event`.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from pynspanel.models.versions import FirmwareKind, VersionInfo


class EventKind(StrEnum):
    UNKNOWN = "unknown"
    UI_EVENT = "ui-event"
    SENSOR = "sensor"
    HARDWARE = "hardware"
    FIRMWARE = "firmware"


class UpdateStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"


class PanelEvent(BaseModel):
    """Fields shared by all event variants."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: EventKind
    source: str = ""
    """Originating entity or subsystem id."""
    event: str = ""
    """Primary classifier."""
    event2: str = ""
    """Secondary classifier."""
    timestamp: datetime | None = None
    data: Any = None
    """Opaque payload for shapes without a dedicated field."""


class UnknownEvent(PanelEvent):
    kind: Literal[EventKind.UNKNOWN] = EventKind.UNKNOWN


class UiEvent(PanelEvent):
    """Event raised by the HMI through the ``CustomRecv`` protocol."""

    kind: Literal[EventKind.UI_EVENT] = EventKind.UI_EVENT
    entity_id: str | None = None
    active: bool | None = None
    value: int | float | None = None
    rgb: tuple[int, int, int] | None = None
    hsv: tuple[float, float, float] | None = None
    hmi_version: VersionInfo | None = None


class SensorEvent(PanelEvent):
    kind: Literal[EventKind.SENSOR] = EventKind.SENSOR
    temp: float | None = None
    temp_unit: str | None = None


class HardwareEvent(PanelEvent):
    """Relay state or physical button press."""

    kind: Literal[EventKind.HARDWARE] = EventKind.HARDWARE
    active: bool | None = None
    value: int | None = None


class FirmwareEvent(PanelEvent):
    """Version report or update outcome for one firmware component."""

    kind: Literal[EventKind.FIRMWARE] = EventKind.FIRMWARE
    firmware: FirmwareKind
    version: str | None = None
    status: UpdateStatus | None = None
    status_msg: str | None = None


AnyEvent = Annotated[
    UnknownEvent | UiEvent | SensorEvent | HardwareEvent | FirmwareEvent,
    Field(discriminator="kind"),
]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(AnyEvent)


def parse_event(data: Any) -> PanelEvent:
    """Rebuild a typed event from its dumped (dict or JSON-compatible) form."""
    event: PanelEvent = _EVENT_ADAPTER.validate_python(data)
    return event
