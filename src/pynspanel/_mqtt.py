"""Internal MQTT runtime: Tasmota topics in, decoded events out, commands back."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pynspanel import _constants as const
from pynspanel.config import PanelConfig
from pynspanel.models.events import PanelEvent
from pynspanel.parsing.decoder import decode_topic_payload


@dataclass(frozen=True)
class PanelTopics:
    """Tasmota full topics of one panel (default ``%prefix%/%topic%/`` layout)."""

    topic: str

    @property
    def subscriptions(self) -> tuple[str, ...]:
        return (f"tele/{self.topic}/#", f"stat/{self.topic}/#")

    def command(self, command: str) -> str:
        return f"cmnd/{self.topic}/{command}"

    def suffix(self, full_topic: str) -> str | None:
        """Last topic segment of a message from this panel, ``None`` for foreign topics."""
        prefix, _, rest = full_topic.partition("/")
        if prefix not in ("tele", "stat"):
            return None
        topic, _, suffix = rest.rpartition("/")
        if topic != self.topic or not suffix:
            return None
        return suffix


class PanelMqttRuntime:
    """Threaded paho-mqtt runtime that emits decoded events onto an asyncio loop.

    Implements the ``CommandChannel`` protocol for the updater.
    """

    def __init__(
        self,
        *,
        config: PanelConfig,
        loop: asyncio.AbstractEventLoop,
        on_event: Callable[[PanelEvent], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_event = on_event
        self._topics = PanelTopics(config.topic)
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def handle_message(self, topic: str, payload: bytes) -> None:
        """Decode one inbound message and hand its events to the loop."""
        suffix = self._topics.suffix(topic)
        if suffix is None:
            return
        events = decode_topic_payload(suffix, payload)
        self._logger.debug("Received PUBLISH topic=%s events=%d", topic, len(events))
        for event in events:
            self._loop.call_soon_threadsafe(self._on_event, event)

    def start(self) -> None:
        """Connect and subscribe to the panel's topics."""
        self.stop()
        config = self._config
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s",
            config.mqtt_host,
            config.mqtt_port,
            config.topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password)
        if config.mqtt_tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)
            for subscription in self._topics.subscriptions:
                self._logger.debug("MQTT subscribing topic=%s", subscription)
                c.subscribe(subscription, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                self.handle_message(msg.topic, msg.payload)
            except Exception:
                self._logger.debug("MQTT message handling failure topic=%s", msg.topic, exc_info=True)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(config.mqtt_host, config.mqtt_port, keepalive=config.mqtt_keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    # ------------------------------------------------------------------
    # CommandChannel
    # ------------------------------------------------------------------

    def _publish(self, topic: str, payload: str) -> None:
        client = self._client
        if client is None or not self._running:
            self._logger.warning("MQTT runtime not running, dropping %s", topic)
            return
        self._logger.debug("MQTT publish topic=%s payload=%s", topic, payload)
        client.publish(topic, payload, qos=0)

    def send(self, command: str, payload: str) -> None:
        self._publish(self._topics.command(command), payload)

    def send_raw(self, payload: str) -> None:
        self._publish(self._topics.command(const.CMD_CUSTOMSEND), payload)
