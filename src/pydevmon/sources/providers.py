"""Provider protocols: the boundary to the platform APIs.

Each source adapter consumes exactly one of these. Concrete implementations
live in :mod:`pydevmon.sources.host` and :mod:`pydevmon._mqtt`; tests supply
in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pydevmon.models import LinkDetails, NetworkState


class ProviderListener(Protocol):
    """Handle for a callback registered with a provider."""

    def remove(self) -> None: ...


class PowerProvider(Protocol):
    async def get_battery_level(self) -> float: ...

    async def get_battery_state(self) -> int: ...

    def add_level_listener(self, callback: Callable[[float], None]) -> ProviderListener: ...

    def add_state_listener(self, callback: Callable[[int], None]) -> ProviderListener: ...


class NetworkProvider(Protocol):
    async def get_network_state(self) -> NetworkState: ...

    async def get_ip_address(self) -> str | None: ...

    async def get_link_details(self) -> LinkDetails: ...


class StorageProvider(Protocol):
    async def get_free_disk_storage(self) -> int: ...

    async def get_total_disk_capacity(self) -> int: ...


class MotionProvider(Protocol):
    def set_update_interval(self, interval_ms: int) -> None: ...

    def add_listener(self, callback: Callable[[Mapping[str, Any]], None]) -> ProviderListener: ...


class IdentityProvider(Protocol):
    """Synchronous static descriptors.

    ``read`` is called with one of ``model_name``, ``os_name``,
    ``os_version``, ``total_memory_bytes``, ``device_type``, ``brand`` or
    ``manufacturer`` and may raise if that descriptor is not available.
    """

    def read(self, descriptor: str) -> Any: ...


class CallbackListener:
    """A :class:`ProviderListener` backed by a removal callable."""

    def __init__(self, remove: Callable[[], None]) -> None:
        self._remove: Callable[[], None] | None = remove

    def remove(self) -> None:
        remove, self._remove = self._remove, None
        if remove is not None:
            remove()
