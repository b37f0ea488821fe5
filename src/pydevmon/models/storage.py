"""Storage capacity model."""

from __future__ import annotations

from pydantic import Field, model_validator

from pydevmon.models._base import TelemetryModel


class StorageReading(TelemetryModel):
    """Free and total capacity in bytes. Unit conversion is left to the view."""

    free_bytes: int = Field(ge=0)
    total_bytes: int = Field(ge=0)

    @model_validator(mode="after")
    def _free_within_total(self) -> StorageReading:
        if self.total_bytes and self.free_bytes > self.total_bytes:
            raise ValueError("free_bytes exceeds total_bytes")
        return self

    @property
    def used_fraction(self) -> float | None:
        if not self.total_bytes:
            return None
        return 1.0 - (self.free_bytes / self.total_bytes)
