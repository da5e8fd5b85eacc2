"""Panel payload decoding.

Turns raw MQTT payloads into typed events. Every public function here is
total: malformed input produces an ``unknown`` (or minimal) event rather
than an exception.

Two protocols arrive over the same transport:

* the comma-delimited HMI protocol, wrapped in a Tasmota
  ``{"CustomRecv": "event,buttonPress2,light.kitchen,OnOff,1"}`` object
* plain Tasmota JSON (sensor telemetry, relay/button state, command
  results, firmware status and upgrade progress)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pynspanel import _constants as const
from pynspanel.models.events import (
    FirmwareEvent,
    HardwareEvent,
    PanelEvent,
    SensorEvent,
    UiEvent,
    UnknownEvent,
    UpdateStatus,
)
from pynspanel.models.versions import FirmwareKind, VersionInfo
from pynspanel.parsing.actions import action_code
from pynspanel.parsing.colors import hmi_pos_to_color
from pynspanel.parsing.normalize import has_key, parse_timestamp, safe_float, to_boolean, to_number

_logger = logging.getLogger(__name__)

_RELAY_KEYS = ("POWER1", "POWER2")
_BUTTON_KEYS = ("Button1", "Button2")


def _now() -> datetime:
    return datetime.now(UTC)


def _part(parts: Sequence[str], index: int) -> str | None:
    return parts[index] if index < len(parts) else None


def _load_json(payload: str | bytes) -> Any:
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    return json.loads(payload)


# ------------------------------------------------------------------
# Top level
# ------------------------------------------------------------------


def decode(payload: str | bytes) -> PanelEvent:
    """Decode one HMI result payload into exactly one event.

    ``CustomRecv`` objects go through the comma protocol, driver version
    reports become firmware events, anything else is ``unknown``.
    """
    try:
        message = _load_json(payload)
    except (ValueError, RecursionError):
        _logger.debug("Payload is not JSON: %r", payload)
        return UnknownEvent(data=payload)

    if not isinstance(message, dict):
        return UnknownEvent(data=message)
    return decode_message(message)


def decode_message(message: dict[str, Any]) -> PanelEvent:
    """Decode an already parsed HMI result object. See :func:`decode`."""
    if const.CUSTOM_RECV_KEY in message:
        custom = message[const.CUSTOM_RECV_KEY]
        if not isinstance(custom, str):
            return UnknownEvent(data=message)
        return decode_custom_message(custom.split(","))

    if const.DRIVER_VERSION_KEY in message:
        version_event = decode_driver_version(message)
        if version_event is not None:
            return version_event

    return UnknownEvent(data=message)


def decode_custom_message(parts: Sequence[str]) -> UiEvent:
    """Decode the comma-separated fields of a ``CustomRecv`` message."""
    if _part(parts, 0) == "event":
        return decode_event(parts)
    return UiEvent()


# ------------------------------------------------------------------
# HMI comma protocol
# ------------------------------------------------------------------


def _apply_number(fields: dict[str, Any], raw: str | None) -> None:
    number = to_number(raw)
    if number is None:
        fields["data"] = raw
    else:
        fields["value"] = number


def _decode_color(raw: str | None) -> tuple[tuple[int, int, int], tuple[float, float, float]] | None:
    tokens = raw.split("|") if raw else []
    if len(tokens) != 2:
        return None
    coords = [to_number(token) for token in tokens]
    if coords[0] is None or coords[1] is None:
        return None
    return hmi_pos_to_color(coords[0], coords[1])


def _decode_button_press(parts: Sequence[str], fields: dict[str, Any]) -> None:
    entity = _part(parts, 2) or ""
    kind = _part(parts, 3)
    fields["event2"] = kind or ""

    if kind == "button":
        fields["source"] = entity
        fields["entity_id"] = entity
        fields["event2"] = entity
    elif kind == "OnOff":
        fields["source"] = entity
        fields["entity_id"] = entity
        # false-like values are omitted, not reported as False
        if to_boolean(_part(parts, 4)):
            fields["active"] = True
    elif kind == "number-set":
        fields["source"] = entity
        fields["entity_id"] = entity
        if len(parts) > 4:
            _apply_number(fields, parts[4])
    elif kind == "colorWheel":
        fields["event2"] = "color"
        color = _decode_color(_part(parts, 4))
        if color is not None:
            fields["rgb"], fields["hsv"] = color
    elif kind == "positionSlider":
        fields["event2"] = "position"
    elif kind == "tiltSlider":
        fields["event2"] = "tilt"

    # Generic trailing value; runs after the cases above and may overwrite them.
    if len(parts) == 5:
        _apply_number(fields, parts[4])


def decode_event(parts: Sequence[str]) -> UiEvent:
    """Decode an ``event,<name>,<source>,...`` message."""
    name = _part(parts, 1) or ""
    fields: dict[str, Any] = {
        "timestamp": _now(),
        "event": name,
        "source": _part(parts, 2) or "",
    }

    if name == const.LUI_EVENT_STARTUP:
        fields["source"] = "hmi"
        fields["hmi_version"] = VersionInfo(internal_version=_part(parts, 2), model=_part(parts, 3))
    elif name == const.LUI_EVENT_SLEEP_REACHED:
        pass
    elif name == const.LUI_EVENT_BUTTON_PRESS_2:
        _decode_button_press(parts, fields)
    elif name == const.LUI_EVENT_PAGE_OPEN_DETAIL:
        fields["entity_id"] = _part(parts, 3)
    else:
        fields["data"] = {"raw": list(parts[2:])}

    event = UiEvent(**fields)
    _logger.debug("Decoded HMI event %s", event.model_dump(exclude_none=True))
    return event


# ------------------------------------------------------------------
# Tasmota JSON shapes
# ------------------------------------------------------------------


def decode_sensor_event(message: Any) -> SensorEvent | None:
    """Decode ``tele/<topic>/SENSOR`` telemetry with an analog temperature."""
    analog = message.get("ANALOG") if isinstance(message, dict) else None
    if not isinstance(analog, dict) or analog.get("Temperature1") is None:
        return None

    temp_unit = message.get("TempUnit")
    fields: dict[str, Any] = {
        "source": "temperature1",
        "event": "measurement",
        "temp": safe_float(analog["Temperature1"]),
        "temp_unit": temp_unit if isinstance(temp_unit, str) else None,
    }
    timestamp = parse_timestamp(message.get("Time"))
    if timestamp is not None:
        fields["timestamp"] = timestamp
    return SensorEvent(**fields)


def _relay_event(message: dict[str, Any], key: str) -> HardwareEvent:
    return HardwareEvent(
        timestamp=_now(),
        event="relay",
        event2="state",
        source=key.lower(),
        active=message[key] == "ON",
    )


def _button_event(message: dict[str, Any], key: str) -> HardwareEvent:
    button = message[key]
    action = button.get("Action") if isinstance(button, dict) else None
    return HardwareEvent(
        timestamp=_now(),
        event="button",
        event2="press",
        source=key.lower(),
        value=action_code(action),
    )


def decode_hardware_events(message: Any) -> list[HardwareEvent]:
    """Decode relay and physical button state.

    Emits one event per present ``POWER1``/``POWER2``/``Button1``/``Button2``
    field, or a single opaque hardware event when none is present.
    """
    events: list[HardwareEvent] = []
    if isinstance(message, dict):
        events.extend(_relay_event(message, key) for key in _RELAY_KEYS if key in message)
        events.extend(_button_event(message, key) for key in _BUTTON_KEYS if key in message)

    if not events:
        events.append(HardwareEvent(timestamp=_now(), data=message))
    return events


def decode_tasmota_command_result(message: Any) -> FirmwareEvent | None:
    """Decode the echo of an ``OtaUrl`` command."""
    if not has_key(message, const.CMD_OTAURL):
        return None
    return FirmwareEvent(
        firmware=FirmwareKind.TASMOTA,
        source=FirmwareKind.TASMOTA.value,
        event="otaUrl",
        data=message[const.CMD_OTAURL],
    )


def decode_tasmota_status(message: Any) -> FirmwareEvent | None:
    """Decode a ``Status 2`` report carrying ``StatusFWR.Version``."""
    status = message.get("StatusFWR") if isinstance(message, dict) else None
    if not isinstance(status, dict) or status.get("Version") is None:
        return None
    return FirmwareEvent(
        firmware=FirmwareKind.TASMOTA,
        source=FirmwareKind.TASMOTA.value,
        event="version",
        version=str(status["Version"]),
    )


def decode_tasmota_upgrade(message: Any) -> FirmwareEvent | None:
    """Decode a ``stat/<topic>/UPGRADE`` result.

    ``"Successful. Restarting"`` is a success; anything else is a failure
    whose diagnostic is the text after the ``Failed`` marker.
    """
    value = message.get(const.MSG_UPGRADE) if isinstance(message, dict) else None
    if not isinstance(value, str) or not value:
        return None

    if value.startswith(const.UPGRADE_SUCCESSFUL):
        return FirmwareEvent(
            firmware=FirmwareKind.TASMOTA,
            source=FirmwareKind.TASMOTA.value,
            event="update",
            status=UpdateStatus.SUCCESS,
        )

    _, marker, detail = value.partition(const.UPGRADE_FAILED)
    status_msg = detail.lstrip(" .:").strip() if marker else value
    return FirmwareEvent(
        firmware=FirmwareKind.TASMOTA,
        source=FirmwareKind.TASMOTA.value,
        event="update",
        status=UpdateStatus.FAILED,
        status_msg=status_msg or None,
    )


def decode_driver_update(message: Any) -> FirmwareEvent | None:
    """Decode the echo of ``UpdateDriverVersion`` or ``FlashNextion``."""
    if has_key(message, const.CMD_UPDATE_DRIVER):
        key, firmware = const.CMD_UPDATE_DRIVER, FirmwareKind.BERRY_DRIVER
    elif has_key(message, const.CMD_FLASH_NEXTION):
        key, firmware = const.CMD_FLASH_NEXTION, FirmwareKind.HMI
    else:
        return None

    result = message[key]
    success = result == const.DRIVER_CMD_SUCCESS
    return FirmwareEvent(
        firmware=firmware,
        source=firmware.value,
        event="update",
        status=UpdateStatus.SUCCESS if success else UpdateStatus.FAILED,
        status_msg=None if success else str(result),
    )


def decode_driver_version(message: Any) -> FirmwareEvent | None:
    """Decode the berry driver's ``nlui_driver_version`` report."""
    version = message.get(const.DRIVER_VERSION_KEY) if isinstance(message, dict) else None
    if version is None:
        return None
    return FirmwareEvent(
        firmware=FirmwareKind.BERRY_DRIVER,
        source=FirmwareKind.BERRY_DRIVER.value,
        event="version",
        version=str(version),
    )


# ------------------------------------------------------------------
# Topic routing
# ------------------------------------------------------------------


def _decode_result(message: dict[str, Any]) -> list[PanelEvent]:
    for decoder in (decode_tasmota_command_result, decode_driver_update):
        event = decoder(message)
        if event is not None:
            return [event]
    return list(decode_hardware_events(message))


def decode_topic_payload(topic_suffix: str, payload: str | bytes) -> list[PanelEvent]:
    """Decode a message by the last segment of its Tasmota topic.

    ``RESULT`` may carry HMI events, driver version reports, command echoes
    or relay/button state; ``SENSOR``, ``STATUS2`` and ``UPGRADE`` have
    dedicated shapes. Never raises.
    """
    suffix = topic_suffix.upper()
    try:
        message = _load_json(payload)
    except (ValueError, RecursionError):
        return [UnknownEvent(source=suffix.lower(), data=payload)]

    if not isinstance(message, dict):
        return [UnknownEvent(source=suffix.lower(), data=message)]

    event: PanelEvent | None = None
    if suffix == "RESULT":
        if const.CUSTOM_RECV_KEY in message or const.DRIVER_VERSION_KEY in message:
            return [decode_message(message)]
        return _decode_result(message)
    if suffix == "SENSOR":
        event = decode_sensor_event(message)
    elif suffix == "STATUS2":
        event = decode_tasmota_status(message)
    elif suffix == "UPGRADE":
        event = decode_tasmota_upgrade(message)

    if event is None:
        event = UnknownEvent(source=suffix.lower(), data=message)
    return [event]
