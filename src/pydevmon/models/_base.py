"""Base model and enum for telemetry value records.

Every value record inherits from :class:`TelemetryModel` which is frozen,
so a record handed to the store can never change underneath a snapshot.

State enums inherit from :class:`TelemetryEnum` which adds a ``_missing_``
hook returning ``UNKNOWN`` for any value without a mapped member.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

#: Placeholder for text fields a composite source could not read.
NOT_AVAILABLE = "N/A"


class TelemetryEnum(enum.IntEnum):
    """Base for provider state enums.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> TelemetryEnum:
        # pylint: disable=no-member
        if hasattr(cls, "UNKNOWN"):
            unknown: TelemetryEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class TelemetryModel(BaseModel):
    """Base for immutable telemetry value records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


class CompositeReading(TelemetryModel):
    """A record merged from several independent sub-reads."""

    missing_fields: frozenset[str] = Field(default_factory=frozenset)
    """Fields holding a sentinel because their sub-read failed."""

    @property
    def is_partial(self) -> bool:
        return bool(self.missing_fields)
