"""Payload decoding for the NSPanel wire protocols."""

from pynspanel.parsing.actions import action_code
from pynspanel.parsing.decoder import (
    decode,
    decode_custom_message,
    decode_driver_update,
    decode_driver_version,
    decode_event,
    decode_hardware_events,
    decode_message,
    decode_sensor_event,
    decode_tasmota_command_result,
    decode_tasmota_status,
    decode_tasmota_upgrade,
    decode_topic_payload,
)

__all__ = [
    "action_code",
    "decode",
    "decode_custom_message",
    "decode_driver_update",
    "decode_driver_version",
    "decode_event",
    "decode_hardware_events",
    "decode_message",
    "decode_sensor_event",
    "decode_tasmota_command_result",
    "decode_tasmota_status",
    "decode_tasmota_upgrade",
    "decode_topic_payload",
]
