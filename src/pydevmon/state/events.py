"""Normalized telemetry updates.

Every fetch and push delivery is turned into a :class:`TelemetryUpdate`
before it reaches the store. Only the state/store layer applies them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TelemetryDomain(StrEnum):
    POWER = "power"
    NETWORK = "network"
    STORAGE = "storage"
    MOTION = "motion"
    IDENTITY = "identity"


class IngestionSource(StrEnum):
    FETCH = "fetch"
    PUSH = "push"
    REFRESH = "refresh"


class TelemetryUpdate(BaseModel):
    """A single value to apply to the aggregation store."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    domain: TelemetryDomain
    source: IngestionSource
    value: Any = Field(..., description="Domain value record")
    sequence: int | None = Field(
        default=None,
        description="Store sequence taken when the read was issued, if any.",
    )
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
