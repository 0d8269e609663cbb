"""Internal MQTT runtime for the live device event channel."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from hubalert._redact import redact_for_log
from hubalert.config import AlertConfig


def parse_mqtt_message(topic: str, payload: bytes) -> list[dict[str, Any]]:
    """Turn one MQTT message into a batch of raw hub events.

    Accepted payloads:
    - a JSON object (flat event or Maker API ``{"content": {...}}`` envelope)
    - a JSON list of such objects
    - a bare value, with device id and attribute taken from the last two
      topic levels (``.../<deviceId>/<attribute>``)
    """
    text = payload.decode("utf-8", errors="replace").strip()
    if not text:
        return []

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError:
        parsed = text

    if isinstance(parsed, dict):
        return [parsed]
    if isinstance(parsed, list):
        return [item for item in parsed if isinstance(item, dict)]

    levels = [level for level in topic.split("/") if level]
    if len(levels) < 2:
        return []
    value = parsed if isinstance(parsed, str) else json.dumps(parsed)
    return [{"deviceId": levels[-2], "name": levels[-1], "value": value}]


class HubEventRuntime:
    """Threaded paho-mqtt runtime that emits event batches onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        config: AlertConfig,
        on_batch: Callable[[list[dict[str, Any]]], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._config = config
        self._on_batch = on_batch
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def _handle_message(self, topic: str, payload: bytes) -> None:
        try:
            batch = parse_mqtt_message(topic, payload)
        except Exception:
            self._logger.debug("MQTT payload parse failure topic=%s", topic, exc_info=True)
            return
        if not batch:
            return
        self._logger.debug("Received PUBLISH topic=%s batch=%s", topic, redact_for_log(batch))
        self._loop.call_soon_threadsafe(self._on_batch, batch)

    def start(self) -> None:
        """Connect and subscribe to the configured topic."""
        self.stop()
        config = self._config
        if not config.mqtt_enabled or config.mqtt_host is None:
            return
        host = config.mqtt_host.strip()
        topic = config.mqtt_topic
        self._logger.debug("MQTT runtime start requested host=%s port=%s topic=%s", host, config.mqtt_port, topic)

        client = mqtt.Client(callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2)
        client.enable_logger(self._logger)
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected; subscribing topic=%s", topic)
            c.subscribe(topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self._handle_message(msg.topic, msg.payload)

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

        client.connect(host, config.mqtt_port, keepalive=config.mqtt_keepalive)
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
