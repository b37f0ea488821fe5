"""Static device descriptors source."""

from __future__ import annotations

from typing import Any

from pydevmon.models import UNKNOWN_MEMORY, DeviceIdentity
from pydevmon.sources.base import SourceAdapter
from pydevmon.sources.providers import IdentityProvider
from pydevmon.state.events import TelemetryDomain

DESCRIPTORS: tuple[str, ...] = (
    "model_name",
    "os_name",
    "os_version",
    "total_memory_bytes",
    "device_type",
    "brand",
    "manufacturer",
)


def merge_identity(values: dict[str, Any], missing: frozenset[str] = frozenset()) -> DeviceIdentity:
    """Build the identity record; descriptors absent from *values* take their sentinel."""
    return DeviceIdentity(**values, missing_fields=missing)


class IdentitySource(SourceAdapter):
    """Reads each descriptor separately so one unreadable field never hides the rest."""

    domain = TelemetryDomain.IDENTITY
    supports_fetch = True

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider

    async def fetch_once(self) -> DeviceIdentity:
        values: dict[str, Any] = {}
        missing: set[str] = set()
        last_error: Exception | None = None
        for descriptor in DESCRIPTORS:
            try:
                values[descriptor] = self._provider.read(descriptor)
            except Exception as exc:
                last_error = exc
                sentinel = UNKNOWN_MEMORY if descriptor == "total_memory_bytes" else None
                self._substitute(descriptor, sentinel, exc)
                missing.add(descriptor)

        if len(missing) == len(DESCRIPTORS):
            raise self._unavailable("no descriptor readable", last_error) from last_error
        return merge_identity(values, frozenset(missing))
