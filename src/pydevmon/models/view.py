"""Render-ready view models emitted by the snapshot publisher.

Every displayed value is already a string; the presentation layer only
lays them out.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

PLACEHOLDER_PENDING = "Loading..."
PLACEHOLDER_UNAVAILABLE = "Unavailable"


class CardStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    STALE = "stale"
    UNAVAILABLE = "unavailable"


class _Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: CardStatus
    detail: str | None = None
    """Reason shown when the card is stale or unavailable."""


class PowerCard(_Card):
    level_text: str
    charge_label: str
    level_fraction: float | None = None


class NetworkCard(_Card):
    connected: str
    wifi_enabled: str
    internet_reachable: str
    ssid: str
    signal_text: str
    ip_address: str
    network_type: str
    partial: bool = False


class StorageCard(_Card):
    free_gib: str
    total_gib: str
    used_fraction: float | None = None


class IdentityCard(_Card):
    model_name: str
    os: str
    total_memory: str
    device_type: str
    brand: str
    manufacturer: str


class MotionCard(_Card):
    x: str
    y: str
    z: str
    x_series: tuple[float, ...] = ()
    y_series: tuple[float, ...] = ()
    z_series: tuple[float, ...] = ()


class DashboardView(BaseModel):
    """One card per telemetry domain plus the snapshot version it was built from."""

    model_config = ConfigDict(frozen=True)

    version: int
    power: PowerCard
    network: NetworkCard
    storage: StorageCard
    identity: IdentityCard
    motion: MotionCard
