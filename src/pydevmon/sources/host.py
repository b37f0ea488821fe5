"""Providers backed by the local host (psutil, platform, sysfs).

Blocking psutil calls run in the default executor so they never stall the
event loop.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import socket
from collections.abc import Callable
from pathlib import Path
from typing import Any

import aiohttp
import psutil

from pydevmon.models import ChargeState, LinkDetails, NetworkState
from pydevmon.sources.providers import CallbackListener

_logger = logging.getLogger(__name__)

_DMI_ROOT = Path("/sys/devices/virtual/dmi/id")
_PROC_WIRELESS = Path("/proc/net/wireless")
# Link quality in /proc/net/wireless is reported out of 70 by most drivers.
_LINK_QUALITY_MAX = 70.0
_WIFI_PREFIXES = ("wl", "wlan", "wi-fi", "wifi", "en0")


async def _in_executor(fn: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


def _charge_state(battery: Any) -> ChargeState:
    if battery is None or battery.power_plugged is None:
        return ChargeState.UNKNOWN
    if not battery.power_plugged:
        return ChargeState.UNPLUGGED
    if battery.percent >= 100:
        return ChargeState.FULL
    return ChargeState.CHARGING


def _is_wifi(name: str) -> bool:
    return name.lower().startswith(_WIFI_PREFIXES)


class HostPowerProvider:
    """Battery readings from ``psutil.sensors_battery``.

    The host offers no change notifications, so listeners are driven by a
    polling task that only runs while at least one listener is registered,
    and only fires when the value actually changed.
    """

    def __init__(self, *, poll_interval: float = 5.0) -> None:
        self._poll_interval = poll_interval
        self._level_listeners: list[Callable[[float], None]] = []
        self._state_listeners: list[Callable[[int], None]] = []
        self._task: asyncio.Task[None] | None = None
        self._last_level: float | None = None
        self._last_state: ChargeState | None = None

    async def get_battery_level(self) -> float:
        battery = await _in_executor(psutil.sensors_battery)
        if battery is None:
            return -1.0
        return float(battery.percent) / 100.0

    async def get_battery_state(self) -> int:
        battery = await _in_executor(psutil.sensors_battery)
        return int(_charge_state(battery))

    def add_level_listener(self, callback: Callable[[float], None]) -> CallbackListener:
        return self._register(self._level_listeners, callback)

    def add_state_listener(self, callback: Callable[[int], None]) -> CallbackListener:
        return self._register(self._state_listeners, callback)

    def _register(self, listeners: list[Any], callback: Callable[[Any], None]) -> CallbackListener:
        listeners.append(callback)
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._poll_loop())

        def _remove() -> None:
            if callback in listeners:
                listeners.remove(callback)
            if not self._level_listeners and not self._state_listeners and self._task is not None:
                self._task.cancel()
                self._task = None

        return CallbackListener(_remove)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                battery = await _in_executor(psutil.sensors_battery)
            except Exception:
                _logger.debug("Battery poll failed", exc_info=True)
                continue
            level = float(battery.percent) / 100.0 if battery is not None else -1.0
            state = _charge_state(battery)
            if level != self._last_level:
                self._last_level = level
                self._dispatch(self._level_listeners, level)
            if state != self._last_state:
                self._last_state = state
                self._dispatch(self._state_listeners, int(state))

    @staticmethod
    def _dispatch(listeners: list[Any], value: Any) -> None:
        for callback in list(listeners):
            try:
                callback(value)
            except Exception:
                _logger.debug("Battery listener failed", exc_info=True)


class HostNetworkProvider:
    """Interface state from psutil plus an HTTP reachability probe."""

    def __init__(
        self,
        *,
        reachability_url: str = "https://clients3.google.com/generate_204",
        reachability_timeout: float = 3.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._reachability_url = reachability_url
        self._reachability_timeout = reachability_timeout
        self._external_session = session is not None
        self._http_session = session
        self._closed = False

    async def get_network_state(self) -> NetworkState:
        stats: dict[str, Any] = await _in_executor(psutil.net_if_stats)
        up = {name for name, stat in stats.items() if stat.isup and not name.startswith("lo")}
        wifi_up = {name for name in up if _is_wifi(name)}
        connected = bool(up)
        network_type: str | None = None
        if wifi_up:
            network_type = "WIFI"
        elif up:
            network_type = "ETHERNET"
        reachable = await self._probe_internet() if connected else False
        return NetworkState(
            is_connected=connected,
            is_wifi_enabled=bool(wifi_up) or any(_is_wifi(name) for name in stats),
            is_internet_reachable=reachable,
            type=network_type,
        )

    async def get_ip_address(self) -> str | None:
        addrs: dict[str, Any] = await _in_executor(psutil.net_if_addrs)
        stats: dict[str, Any] = await _in_executor(psutil.net_if_stats)
        for name, entries in addrs.items():
            stat = stats.get(name)
            if name.startswith("lo") or stat is None or not stat.isup:
                continue
            for entry in entries:
                if entry.family == socket.AF_INET and not entry.address.startswith("127."):
                    return str(entry.address)
        return None

    async def get_link_details(self) -> LinkDetails:
        strength = await _in_executor(self._read_link_quality)
        ssid = await self._read_ssid()
        return LinkDetails(ssid=ssid, strength=strength)

    async def close(self) -> None:
        self._closed = True
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None

    async def _probe_internet(self) -> bool:
        if self._closed:
            return False
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        timeout = aiohttp.ClientTimeout(total=self._reachability_timeout)
        try:
            async with self._http_session.get(self._reachability_url, timeout=timeout) as response:
                return response.status < 400
        except (aiohttp.ClientError, TimeoutError):
            _logger.debug("Reachability probe failed url=%s", self._reachability_url, exc_info=True)
            return False

    @staticmethod
    def _read_link_quality() -> int:
        # Two header lines, then "iface: status link level noise ..."
        lines = _PROC_WIRELESS.read_text().splitlines()[2:]
        for line in lines:
            name, _, rest = line.partition(":")
            if not _is_wifi(name.strip()):
                continue
            link = float(rest.split()[1].rstrip("."))
            return max(0, min(100, round(link / _LINK_QUALITY_MAX * 100)))
        raise OSError("no wireless interface in /proc/net/wireless")

    @staticmethod
    async def _read_ssid() -> str:
        proc = await asyncio.create_subprocess_exec(
            "iwgetid",
            "-r",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        stdout, _ = await proc.communicate()
        ssid = stdout.decode(errors="replace").strip()
        if proc.returncode != 0 or not ssid:
            raise OSError("iwgetid returned no SSID")
        return ssid


class HostStorageProvider:
    def __init__(self, path: str = "/") -> None:
        self._path = path

    async def get_free_disk_storage(self) -> int:
        usage = await _in_executor(psutil.disk_usage, self._path)
        return int(usage.free)

    async def get_total_disk_capacity(self) -> int:
        usage = await _in_executor(psutil.disk_usage, self._path)
        return int(usage.total)


def _read_dmi(name: str) -> str:
    value = (_DMI_ROOT / name).read_text().strip()
    if not value:
        raise OSError(f"empty DMI field {name}")
    return value


class HostIdentityProvider:
    """Static descriptors from ``platform``, psutil and DMI sysfs entries."""

    def read(self, descriptor: str) -> Any:
        if descriptor == "model_name":
            return _read_dmi("product_name")
        if descriptor == "os_name":
            return platform.system()
        if descriptor == "os_version":
            return platform.release()
        if descriptor == "total_memory_bytes":
            return psutil.virtual_memory().total
        if descriptor == "device_type":
            return "LAPTOP" if psutil.sensors_battery() is not None else "DESKTOP"
        if descriptor == "brand":
            return _read_dmi("board_vendor")
        if descriptor == "manufacturer":
            return _read_dmi("sys_vendor")
        raise KeyError(descriptor)
