"""Disk capacity source."""

from __future__ import annotations

import asyncio

from pydevmon.models import StorageReading
from pydevmon.sources.base import SourceAdapter
from pydevmon.sources.providers import StorageProvider
from pydevmon.state.events import TelemetryDomain


class StorageSource(SourceAdapter):
    domain = TelemetryDomain.STORAGE
    supports_fetch = True

    def __init__(self, provider: StorageProvider) -> None:
        self._provider = provider

    async def fetch_once(self) -> StorageReading:
        free, total = await asyncio.gather(
            self._provider.get_free_disk_storage(),
            self._provider.get_total_disk_capacity(),
            return_exceptions=True,
        )
        try:
            for result in (free, total):
                if isinstance(result, BaseException):
                    raise result
            return StorageReading(free_bytes=free, total_bytes=total)
        except Exception as exc:
            raise self._unavailable("capacity read failed", exc) from exc
