"""Client configuration for pynspanel."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pynspanel import _constants as const
from pynspanel.exceptions import PanelConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class PanelConfig:
    """Client configuration.

    Parameters
    ----------
    topic : str
        Tasmota ``%topic%`` of the panel (e.g. ``"nspanel_kitchen"``).
    mqtt_host : str
        MQTT broker host name.
    mqtt_port : int
        MQTT broker port.
    mqtt_username : str or None
        Broker user name, if the broker requires authentication.
    mqtt_password : str or None
        Broker password.
    mqtt_tls : bool
        Connect to the broker over TLS.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    auto_update : bool
        Start available updates without asking for confirmation on the panel.
    acquisition_poll_interval : float
        Seconds between two checks of the version acquisition flags.
    acquisition_max_polls : int
        Number of checks before version acquisition gives up.
    http_timeout : float
        Total timeout in seconds for a single version source fetch.
    tasmota_release_url, berry_driver_url, nlui_source_url : str
        Sources of the latest published versions.
    tasmota_ota_url, hmi_firmware_url : str
        Firmware images flashed by the updater.
    """

    topic: str
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = False
    mqtt_keepalive: int = 60
    auto_update: bool = False
    acquisition_poll_interval: float = 1.0
    acquisition_max_polls: int = 10
    http_timeout: float = 10.0
    user_agent: str = const.USER_AGENT
    tasmota_release_url: str = const.URL_TASMOTA_RELEASES_LATEST
    berry_driver_url: str = const.URL_BERRY_DRIVER_LATEST
    nlui_source_url: str = const.URL_NLUI_LATEST
    tasmota_ota_url: str = const.URL_TASMOTA_OTA
    hmi_firmware_url: str = const.URL_HMI_FIRMWARE

    def __post_init__(self) -> None:
        if not self.topic or not self.topic.strip():
            raise PanelConfigError("topic must be non-empty")
        if self.acquisition_max_polls < 1:
            raise PanelConfigError("acquisition_max_polls must be at least 1")
        if self.acquisition_poll_interval <= 0:
            raise PanelConfigError("acquisition_poll_interval must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> PanelConfig:
        """Create configuration from environment variables.

        Reads ``NSPANEL_TOPIC`` and optional ``NSPANEL_*`` variables.
        Explicit keyword arguments override environment values.

        Raises
        ------
        PanelConfigError
            If no topic is configured or a numeric variable is malformed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "NSPANEL_TOPIC": "topic",
            "NSPANEL_MQTT_HOST": "mqtt_host",
            "NSPANEL_MQTT_USERNAME": "mqtt_username",
            "NSPANEL_MQTT_PASSWORD": "mqtt_password",
            "NSPANEL_USER_AGENT": "user_agent",
            "NSPANEL_TASMOTA_OTA_URL": "tasmota_ota_url",
            "NSPANEL_HMI_FIRMWARE_URL": "hmi_firmware_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP = {
            "NSPANEL_MQTT_PORT": ("mqtt_port", int),
            "NSPANEL_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
            "NSPANEL_ACQUISITION_POLL_INTERVAL": ("acquisition_poll_interval", float),
            "NSPANEL_ACQUISITION_MAX_POLLS": ("acquisition_max_polls", int),
            "NSPANEL_HTTP_TIMEOUT": ("http_timeout", float),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise PanelConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("NSPANEL_MQTT_TLS"), False)
        if "auto_update" not in overrides:
            config_kwargs["auto_update"] = _env_bool(env.get("NSPANEL_AUTO_UPDATE"), False)

        config_kwargs.update(overrides)
        if "topic" not in config_kwargs:
            raise PanelConfigError("NSPANEL_TOPIC is not set")

        return cls(**config_kwargs)
