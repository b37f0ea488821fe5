"""Ingestion application helpers.

Every path into the store (startup fetch, refresh, push delivery) goes
through :func:`apply_value_to_store`, so updates are built the same way
regardless of where the value came from.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydevmon.models import DeviceIdentity, MotionSample, NetworkReading, PowerReading, StorageReading
from pydevmon.state.events import IngestionSource, TelemetryDomain, TelemetryUpdate

_DOMAIN_TYPES: dict[TelemetryDomain, type] = {
    TelemetryDomain.POWER: PowerReading,
    TelemetryDomain.NETWORK: NetworkReading,
    TelemetryDomain.STORAGE: StorageReading,
    TelemetryDomain.MOTION: MotionSample,
    TelemetryDomain.IDENTITY: DeviceIdentity,
}


def build_update(
    *,
    domain: TelemetryDomain,
    source: IngestionSource,
    value: Any,
    sequence: int | None = None,
) -> TelemetryUpdate:
    """Build a store update, checking the value record matches its domain."""

    expected = _DOMAIN_TYPES[domain]
    if not isinstance(value, expected):
        raise TypeError(f"{domain} expects {expected.__name__}, got {type(value).__name__}")
    return TelemetryUpdate(domain=domain, source=source, value=value, sequence=sequence)


def apply_value_to_store(
    store_apply: Callable[[TelemetryUpdate], None],
    *,
    domain: TelemetryDomain,
    source: IngestionSource,
    value: Any,
    sequence: int | None = None,
) -> TelemetryUpdate:
    """Build and apply an update to a store."""

    update = build_update(domain=domain, source=source, value=value, sequence=sequence)
    store_apply(update)
    return update
