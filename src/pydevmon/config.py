"""Monitor configuration for pydevmon."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pydevmon.exceptions import DevmonConfigError
from pydevmon.state.policy import UpdatePolicy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError as exc:
        raise DevmonConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MqttMotionSettings:
    """Broker details for the MQTT motion feed.

    Samples are expected as JSON objects ``{"x": .., "y": .., "z": .., "timestamp": ..}``
    published on ``topic``.
    """

    host: str = "localhost"
    port: int = 1883
    topic: str = "devmon/motion"
    username: str | None = None
    password: str | None = None
    tls: bool = False
    keepalive: int = 60
    client_id: str = "pydevmon"


@dataclasses.dataclass(frozen=True)
class MonitorConfig:
    """Monitoring session configuration.

    Parameters
    ----------
    fetch_timeout : float
        Seconds a one-shot fetch may take before the domain is marked
        unavailable.
    motion_interval_ms : int
        Sampling interval requested from the motion provider.
    chart_window : int
        Number of motion samples retained for the live chart.
    update_policy : UpdatePolicy
        How the store resolves out-of-order writes within a domain.
    storage_path : str
        Mount point whose capacity is reported.
    battery_poll_interval : float
        Seconds between host battery reads used to emulate change listeners.
    reachability_url : str
        URL probed to decide whether the internet is reachable.
    reachability_timeout : float
        Seconds allowed for the reachability probe.
    mqtt_motion_enabled : bool
        Read motion samples from an MQTT broker.
    mqtt : MqttMotionSettings
        Broker details, used when ``mqtt_motion_enabled`` is set.
    """

    fetch_timeout: float = 10.0
    motion_interval_ms: int = 100
    chart_window: int = 60
    update_policy: UpdatePolicy = UpdatePolicy.LAST_WRITE_WINS
    storage_path: str = "/"
    battery_poll_interval: float = 5.0
    reachability_url: str = "https://clients3.google.com/generate_204"
    reachability_timeout: float = 3.0
    mqtt_motion_enabled: bool = False
    mqtt: MqttMotionSettings = dataclasses.field(default_factory=MqttMotionSettings)

    def __post_init__(self) -> None:
        if self.fetch_timeout <= 0:
            raise DevmonConfigError("fetch_timeout must be positive")
        if self.motion_interval_ms <= 0:
            raise DevmonConfigError("motion_interval_ms must be positive")
        if self.chart_window < 1:
            raise DevmonConfigError("chart_window must be at least 1")
        if not isinstance(self.update_policy, UpdatePolicy):
            try:
                object.__setattr__(self, "update_policy", UpdatePolicy(self.update_policy))
            except ValueError as exc:
                raise DevmonConfigError(f"Unknown update policy {self.update_policy!r}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> MonitorConfig:
        """Create configuration from ``DEVMON_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        _ENV_MQTT_MAP = {
            "DEVMON_MQTT_HOST": "host",
            "DEVMON_MQTT_TOPIC": "topic",
            "DEVMON_MQTT_USERNAME": "username",
            "DEVMON_MQTT_PASSWORD": "password",
            "DEVMON_MQTT_CLIENT_ID": "client_id",
        }
        for env_key, field_name in _ENV_MQTT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val
        for env_key, field_name in (("DEVMON_MQTT_PORT", "port"), ("DEVMON_MQTT_KEEPALIVE", "keepalive")):
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = _env_number(env_key, val, int)
        tls_env = env.get("DEVMON_MQTT_TLS")
        if tls_env is not None:
            mqtt_kwargs["tls"] = _env_bool(tls_env, False)

        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttMotionSettings):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        config_kwargs: dict[str, Any] = {"mqtt": MqttMotionSettings(**mqtt_kwargs)}

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "DEVMON_FETCH_TIMEOUT": ("fetch_timeout", float),
            "DEVMON_MOTION_INTERVAL_MS": ("motion_interval_ms", int),
            "DEVMON_CHART_WINDOW": ("chart_window", int),
            "DEVMON_BATTERY_POLL_INTERVAL": ("battery_poll_interval", float),
            "DEVMON_REACHABILITY_TIMEOUT": ("reachability_timeout", float),
        }
        for env_key, (field_name, kind) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, kind)

        for env_key, field_name in (
            ("DEVMON_STORAGE_PATH", "storage_path"),
            ("DEVMON_REACHABILITY_URL", "reachability_url"),
        ):
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        policy_env = env.get("DEVMON_UPDATE_POLICY")
        if policy_env is not None and "update_policy" not in overrides:
            config_kwargs["update_policy"] = policy_env.strip().lower()

        if "mqtt_motion_enabled" not in overrides:
            config_kwargs["mqtt_motion_enabled"] = _env_bool(env.get("DEVMON_MQTT_MOTION_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
