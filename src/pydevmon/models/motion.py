"""Accelerometer sample model."""

from __future__ import annotations

import time
from typing import Any

from pydantic import Field, field_validator

from pydevmon.ingestion.normalize import normalize_timestamp_seconds, safe_float
from pydevmon.models._base import TelemetryModel


class MotionSample(TelemetryModel):
    """One tri-axis accelerometer sample (in g) with its epoch timestamp."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    timestamp: float = Field(default_factory=time.time)

    @field_validator("x", "y", "z", mode="before")
    @classmethod
    def _coerce_axis(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError("axis value must be numeric")
        return parsed

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> float:
        parsed = normalize_timestamp_seconds(value)
        return parsed if parsed is not None else time.time()
