"""Network source composed from three independent provider reads."""

from __future__ import annotations

import asyncio
from typing import Any

from pydevmon.models import NOT_AVAILABLE, LinkDetails, NetworkReading, NetworkState
from pydevmon.sources.base import SourceAdapter
from pydevmon.sources.providers import NetworkProvider
from pydevmon.state.events import TelemetryDomain

STATE_FIELDS = frozenset({"connected", "wifi_enabled", "internet_reachable", "network_type"})
IP_FIELDS = frozenset({"ip_address"})
LINK_FIELDS = frozenset({"ssid", "signal_strength"})


def merge_network_reading(
    *,
    state: NetworkState | None,
    ip_address: str | None,
    details: LinkDetails | None,
    missing: frozenset[str] = frozenset(),
) -> NetworkReading:
    """Merge the three sub-reads into one record.

    ``state`` or ``details`` of ``None`` means that read failed and its
    fields take their sentinels: ``False``/``None`` for the connectivity
    state, ``"N/A"`` for SSID and signal strength.
    """
    state = state or NetworkState()
    return NetworkReading(
        connected=state.is_connected,
        wifi_enabled=state.is_wifi_enabled,
        internet_reachable=state.is_internet_reachable,
        network_type=state.type,
        ip_address=ip_address,
        ssid=details.ssid if details is not None else NOT_AVAILABLE,
        signal_strength=details.strength if details is not None else NOT_AVAILABLE,
        missing_fields=missing,
    )


class NetworkSource(SourceAdapter):
    """Connectivity state, IP address and Wi-Fi link details.

    A failing sub-read degrades to sentinels for its own fields only. The
    fetch fails as a whole only when every sub-read fails.
    """

    domain = TelemetryDomain.NETWORK
    supports_fetch = True

    def __init__(self, provider: NetworkProvider) -> None:
        self._provider = provider

    async def fetch_once(self) -> NetworkReading:
        results = await asyncio.gather(
            self._provider.get_network_state(),
            self._provider.get_ip_address(),
            self._provider.get_link_details(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        state_result, ip_result, details_result = results

        if all(isinstance(result, Exception) for result in results):
            raise self._unavailable("all network reads failed", state_result) from state_result

        missing: set[str] = set()
        state = self._checked(state_result, NetworkState, STATE_FIELDS, missing)
        details = self._checked(details_result, LinkDetails, LINK_FIELDS, missing)
        ip_address: str | None = None
        if isinstance(ip_result, Exception):
            self._substitute("ip_address", None, ip_result)
            missing |= IP_FIELDS
        else:
            ip_address = ip_result

        return merge_network_reading(
            state=state,
            ip_address=ip_address,
            details=details,
            missing=frozenset(missing),
        )

    def _checked(self, result: Any, expected: type, fields: frozenset[str], missing: set[str]) -> Any:
        if isinstance(result, expected):
            return result
        cause = result if isinstance(result, Exception) else TypeError(f"unexpected {type(result).__name__}")
        for field in sorted(fields):
            self._substitute(field, NOT_AVAILABLE if field in LINK_FIELDS else None, cause)
        missing |= fields
        return None
