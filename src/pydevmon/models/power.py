"""Battery/power model."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from pydevmon.ingestion.normalize import normalize_level_fraction, safe_int
from pydevmon.models._base import TelemetryEnum, TelemetryModel


class ChargeState(TelemetryEnum):
    """Battery charge state as reported by the power provider."""

    UNKNOWN = 0
    UNPLUGGED = 1
    CHARGING = 2
    FULL = 3


class PowerReading(TelemetryModel):
    """Battery level and charge state.

    Parameters
    ----------
    level_fraction : float or None
        Charge level in ``0.0..1.0``; ``None`` when the provider cannot tell.
    charge_state : ChargeState
        Whether the device is unplugged, charging or full.
    """

    level_fraction: float | None = None
    charge_state: ChargeState = ChargeState.UNKNOWN

    @field_validator("level_fraction", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> float | None:
        return normalize_level_fraction(value)

    @field_validator("charge_state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> ChargeState:
        if isinstance(value, ChargeState):
            return value
        parsed = safe_int(value)
        return ChargeState(parsed) if parsed is not None else ChargeState.UNKNOWN
