"""Snapshot push runtime.

The backend publishes every complete snapshot as JSON on an MQTT topic.
:class:`SnapshotPushRuntime` runs the paho-mqtt network loop in its own
thread and hands decoded payloads to the asyncio loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from vyntool.config import VynConfig
from vyntool.exceptions import VynPayloadError

PayloadCallback = Callable[[dict[str, Any]], None]


class SnapshotSubscription(Protocol):
    """Anything that can deliver raw snapshot payloads until stopped."""

    def start(self, on_payload: PayloadCallback) -> None:
        ...

    def stop(self) -> None:
        ...


@dataclass(frozen=True)
class PushEndpoint:
    """Broker/topic the backend publishes snapshots to."""

    host: str
    port: int
    topic: str
    client_id: str
    keepalive: int = 60

    @classmethod
    def from_config(cls, config: VynConfig) -> PushEndpoint:
        return cls(
            host=config.push_host,
            port=config.push_port,
            topic=config.push_topic,
            client_id=f"vyntool-{secrets.token_hex(4)}",
            keepalive=config.push_keepalive,
        )


def decode_push_payload(payload: bytes) -> dict[str, Any]:
    """Decode an MQTT payload into a JSON object."""
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise VynPayloadError(f"Snapshot push is not JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise VynPayloadError("Snapshot push decoded to non-object JSON")
    return parsed


class SnapshotPushRuntime:
    """Threaded paho-mqtt runtime that emits snapshot payloads onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        endpoint: PushEndpoint,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._endpoint = endpoint
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, on_payload: PayloadCallback) -> None:
        """Connect and subscribe; *on_payload* runs on the asyncio loop."""
        self.stop()
        endpoint = self._endpoint
        self._logger.debug(
            "Push runtime start requested host=%s port=%s topic=%s client_id=%s",
            endpoint.host,
            endpoint.port,
            endpoint.topic,
            endpoint.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=endpoint.client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("Push broker connect failed: %s", reason_code)
                return
            self._logger.debug("Push broker connected, subscribing topic=%s", endpoint.topic)
            c.subscribe(endpoint.topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                parsed = decode_push_payload(msg.payload)
            except VynPayloadError:
                self._logger.warning("Dropping undecodable snapshot push on %s", msg.topic, exc_info=True)
                return
            self._loop.call_soon_threadsafe(on_payload, parsed)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("Push broker disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(endpoint.host, endpoint.port, keepalive=endpoint.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("Push network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("Push disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("Push network loop stopped")
