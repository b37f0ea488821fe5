"""Device identity model."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from pydevmon.ingestion.normalize import safe_int, safe_str
from pydevmon.models._base import CompositeReading

#: Sentinel for an unreadable memory size.
UNKNOWN_MEMORY = -1


class DeviceIdentity(CompositeReading):
    """Static hardware and OS descriptors, read once per session.

    String fields are ``None`` and ``total_memory_bytes`` is ``-1`` when the
    corresponding descriptor could not be read.
    """

    model_name: str | None = None
    os_name: str | None = None
    os_version: str | None = None
    total_memory_bytes: int = UNKNOWN_MEMORY
    device_type: str | None = None
    brand: str | None = None
    manufacturer: str | None = None

    @field_validator("model_name", "os_name", "os_version", "device_type", "brand", "manufacturer", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("total_memory_bytes", mode="before")
    @classmethod
    def _coerce_memory(cls, value: Any) -> int:
        parsed = safe_int(value)
        return parsed if parsed is not None and parsed >= 0 else UNKNOWN_MEMORY
