"""Network connectivity model."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import field_validator

from pydevmon.ingestion.normalize import normalize_ip_address, safe_int, safe_str
from pydevmon.models._base import NOT_AVAILABLE, CompositeReading, TelemetryModel


class NetworkState(TelemetryModel):
    """Connectivity-state sub-read."""

    is_connected: bool = False
    is_wifi_enabled: bool = False
    is_internet_reachable: bool = False
    type: str | None = None


class LinkDetails(TelemetryModel):
    """Link-detail sub-read (Wi-Fi SSID and signal strength in percent)."""

    ssid: str | None = None
    strength: int | None = None


class NetworkReading(CompositeReading):
    """Merged network view.

    ``ssid`` and ``signal_strength`` hold ``"N/A"`` when the link details
    could not be read; ``ip_address`` and ``network_type`` hold ``None``.
    """

    connected: bool = False
    wifi_enabled: bool = False
    internet_reachable: bool = False
    ssid: str = NOT_AVAILABLE
    signal_strength: int | Literal["N/A"] = NOT_AVAILABLE
    ip_address: str | None = None
    network_type: str | None = None

    @field_validator("ssid", mode="before")
    @classmethod
    def _coerce_ssid(cls, value: Any) -> str:
        return safe_str(value) or NOT_AVAILABLE

    @field_validator("signal_strength", mode="before")
    @classmethod
    def _coerce_strength(cls, value: Any) -> int | str:
        parsed = safe_int(value)
        return parsed if parsed is not None else NOT_AVAILABLE

    @field_validator("ip_address", mode="before")
    @classmethod
    def _coerce_ip(cls, value: Any) -> str | None:
        return normalize_ip_address(value)

    @field_validator("network_type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str | None:
        return safe_str(value)
