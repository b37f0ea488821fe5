"""MQTT motion feed: payload parsing and threaded runtime."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any, cast

import paho.mqtt.client as mqtt

from pydevmon._redact import redact_for_log
from pydevmon.config import MqttMotionSettings
from pydevmon.exceptions import DevmonError
from pydevmon.sources.providers import CallbackListener

_AXES = ("x", "y", "z")


def decode_motion_payload(payload: bytes) -> dict[str, Any]:
    """Parse one published sample into ``{"x", "y", "z", "timestamp"}``.

    Accepts a flat object or one nested under ``"acceleration"``.
    """
    parsed = json.loads(payload.decode("utf-8"))
    if not isinstance(parsed, dict):
        raise DevmonError("Motion payload is not a JSON object")
    nested = parsed.get("acceleration")
    body: dict[str, Any] = dict(nested) if isinstance(nested, dict) else dict(parsed)
    missing = [axis for axis in _AXES if axis not in body]
    if missing:
        raise DevmonError(f"Motion payload missing axes: {', '.join(missing)}")
    sample = {axis: body[axis] for axis in _AXES}
    timestamp = body.get("timestamp", parsed.get("timestamp"))
    if timestamp is not None:
        sample["timestamp"] = timestamp
    return sample


class MqttMotionRuntime:
    """Threaded paho-mqtt runtime that emits parsed samples onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_sample: Callable[[dict[str, Any]], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_sample = on_sample
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, settings: MqttMotionSettings) -> None:
        """Connect and subscribe with the provided broker settings."""
        self.stop()
        self._logger.debug(
            "MQTT motion runtime start %s",
            redact_for_log(
                {
                    "host": settings.host,
                    "port": settings.port,
                    "topic": settings.topic,
                    "username": settings.username,
                    "password": settings.password,
                }
            ),
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
        )
        client.enable_logger(self._logger)
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        self._topic = settings.topic

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
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                sample = decode_motion_payload(msg.payload)
            except Exception:
                self._logger.debug("MQTT motion payload parse failure topic=%s", msg.topic, exc_info=True)
                return
            self._loop.call_soon_threadsafe(self._on_sample, sample)

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

        client.connect(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")


class MqttMotionProvider:
    """Motion provider fed by an MQTT topic.

    The broker connection is opened with the first listener and closed with
    the last one. Samples arriving faster than the requested update interval
    are dropped.
    """

    def __init__(
        self,
        settings: MqttMotionSettings,
        *,
        runtime_factory: Callable[..., MqttMotionRuntime] = MqttMotionRuntime,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._runtime_factory = runtime_factory
        self._clock = clock
        self._runtime: MqttMotionRuntime | None = None
        self._listeners: list[Callable[[Mapping[str, Any]], None]] = []
        self._interval_s = 0.0
        self._last_delivery: float | None = None

    def set_update_interval(self, interval_ms: int) -> None:
        self._interval_s = max(interval_ms, 0) / 1000.0

    def add_listener(self, callback: Callable[[Mapping[str, Any]], None]) -> CallbackListener:
        if self._runtime is None:
            runtime = self._runtime_factory(loop=asyncio.get_running_loop(), on_sample=self._dispatch)
            runtime.start(self._settings)
            self._runtime = runtime
        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)
            if not self._listeners:
                self._stop()

        return CallbackListener(_remove)

    def _stop(self) -> None:
        runtime = self._runtime
        self._runtime = None
        self._last_delivery = None
        if runtime is not None:
            runtime.stop()

    def _dispatch(self, sample: dict[str, Any]) -> None:
        now = self._clock()
        if self._last_delivery is not None and now - self._last_delivery < self._interval_s:
            return
        self._last_delivery = now
        for callback in list(self._listeners):
            callback(sample)
