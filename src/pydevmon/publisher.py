"""Snapshot publisher: store changes in, render-ready view models out."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from functools import lru_cache

from pydevmon.models import (
    NOT_AVAILABLE,
    PLACEHOLDER_PENDING,
    PLACEHOLDER_UNAVAILABLE,
    UNKNOWN_MEMORY,
    CardStatus,
    ChargeState,
    DashboardView,
    IdentityCard,
    MotionCard,
    NetworkCard,
    PowerCard,
    StorageCard,
)
from pydevmon.state.events import TelemetryDomain
from pydevmon.state.store import AggregationStore, Snapshot

_logger = logging.getLogger(__name__)

_GIB = 1024**3

CHARGE_LABELS: dict[ChargeState, str] = {
    ChargeState.UNKNOWN: "Unknown",
    ChargeState.UNPLUGGED: "Unplugged",
    ChargeState.CHARGING: "Charging",
    ChargeState.FULL: "Full",
}

ViewListener = Callable[[DashboardView], None]


@lru_cache(maxsize=256)
def format_percent(fraction: float | None) -> str:
    if fraction is None:
        return "Unknown"
    return f"{fraction * 100:.0f}%"


@lru_cache(maxsize=256)
def format_gib(num_bytes: int) -> str:
    """Bytes as GiB with two decimals, e.g. ``"12.34"``."""
    return f"{num_bytes / _GIB:.2f}"


def format_memory(num_bytes: int) -> str:
    if num_bytes == UNKNOWN_MEMORY:
        return NOT_AVAILABLE
    return f"{format_gib(num_bytes)} GB"


def format_signal(strength: int | str) -> str:
    if strength == NOT_AVAILABLE:
        return NOT_AVAILABLE
    return f"{strength}%"


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _text(value: str | None) -> str:
    return value if value else NOT_AVAILABLE


def _status(snapshot: Snapshot, domain: TelemetryDomain) -> tuple[CardStatus, str | None]:
    reason = snapshot.unavailable.get(domain)
    if domain in snapshot:
        return (CardStatus.STALE if reason else CardStatus.READY), reason
    if reason:
        return CardStatus.UNAVAILABLE, reason
    return CardStatus.PENDING, None


def _placeholder(status: CardStatus) -> str:
    return PLACEHOLDER_PENDING if status is CardStatus.PENDING else PLACEHOLDER_UNAVAILABLE


def _power_card(snapshot: Snapshot) -> PowerCard:
    status, detail = _status(snapshot, TelemetryDomain.POWER)
    reading = snapshot.power
    if reading is None:
        text = _placeholder(status)
        return PowerCard(status=status, detail=detail, level_text=text, charge_label=text)
    return PowerCard(
        status=status,
        detail=detail,
        level_text=format_percent(reading.level_fraction),
        charge_label=CHARGE_LABELS[reading.charge_state],
        level_fraction=reading.level_fraction,
    )


def _network_card(snapshot: Snapshot) -> NetworkCard:
    status, detail = _status(snapshot, TelemetryDomain.NETWORK)
    reading = snapshot.network
    if reading is None:
        text = _placeholder(status)
        return NetworkCard(
            status=status,
            detail=detail,
            connected=text,
            wifi_enabled=text,
            internet_reachable=text,
            ssid=text,
            signal_text=text,
            ip_address=text,
            network_type=text,
        )
    return NetworkCard(
        status=status,
        detail=detail,
        connected=yes_no(reading.connected),
        wifi_enabled=yes_no(reading.wifi_enabled),
        internet_reachable=yes_no(reading.internet_reachable),
        ssid=reading.ssid,
        signal_text=format_signal(reading.signal_strength),
        ip_address=_text(reading.ip_address),
        network_type=_text(reading.network_type),
        partial=reading.is_partial,
    )


def _storage_card(snapshot: Snapshot) -> StorageCard:
    status, detail = _status(snapshot, TelemetryDomain.STORAGE)
    reading = snapshot.storage
    if reading is None:
        text = _placeholder(status)
        return StorageCard(status=status, detail=detail, free_gib=text, total_gib=text)
    return StorageCard(
        status=status,
        detail=detail,
        free_gib=format_gib(reading.free_bytes),
        total_gib=format_gib(reading.total_bytes),
        used_fraction=reading.used_fraction,
    )


def _identity_card(snapshot: Snapshot) -> IdentityCard:
    status, detail = _status(snapshot, TelemetryDomain.IDENTITY)
    identity = snapshot.identity
    if identity is None:
        text = _placeholder(status)
        return IdentityCard(
            status=status,
            detail=detail,
            model_name=text,
            os=text,
            total_memory=text,
            device_type=text,
            brand=text,
            manufacturer=text,
        )
    os_text = " ".join(part for part in (identity.os_name, identity.os_version) if part)
    return IdentityCard(
        status=status,
        detail=detail,
        model_name=_text(identity.model_name),
        os=_text(os_text),
        total_memory=format_memory(identity.total_memory_bytes),
        device_type=_text(identity.device_type),
        brand=_text(identity.brand),
        manufacturer=_text(identity.manufacturer),
    )


def _motion_card(snapshot: Snapshot) -> MotionCard:
    status, detail = _status(snapshot, TelemetryDomain.MOTION)
    sample = snapshot.motion
    if sample is None:
        text = _placeholder(status)
        return MotionCard(status=status, detail=detail, x=text, y=text, z=text)
    history = snapshot.motion_history
    return MotionCard(
        status=status,
        detail=detail,
        x=f"{sample.x:.3f}",
        y=f"{sample.y:.3f}",
        z=f"{sample.z:.3f}",
        x_series=tuple(s.x for s in history),
        y_series=tuple(s.y for s in history),
        z_series=tuple(s.z for s in history),
    )


def build_view_model(snapshot: Snapshot) -> DashboardView:
    """Translate a snapshot into display strings. Pure; the snapshot is not touched."""
    return DashboardView(
        version=snapshot.version,
        power=_power_card(snapshot),
        network=_network_card(snapshot),
        storage=_storage_card(snapshot),
        identity=_identity_card(snapshot),
        motion=_motion_card(snapshot),
    )


class SnapshotPublisher:
    """Emits a :class:`DashboardView` for every store change.

    Consumers either register a callback with :meth:`subscribe` or iterate
    :meth:`stream`. Each stream has its own unbounded queue, so a slow
    consumer sees every view, late.
    """

    def __init__(self, store: AggregationStore) -> None:
        self._listeners: list[ViewListener] = []
        self._queues: set[asyncio.Queue[DashboardView | None]] = set()
        self._latest = build_view_model(store.current_snapshot())
        self._closed = False
        self._detach = store.on_change(self._on_snapshot)

    @property
    def latest(self) -> DashboardView:
        return self._latest

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Call *listener* with every new view; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def stream(self, *, include_current: bool = True) -> AsyncIterator[DashboardView]:
        """Iterate views until the publisher closes."""
        queue: asyncio.Queue[DashboardView | None] = asyncio.Queue()
        if include_current:
            queue.put_nowait(self._latest)
        if self._closed:
            queue.put_nowait(None)
        else:
            self._queues.add(queue)
        try:
            while True:
                view = await queue.get()
                if view is None:
                    return
                yield view
        finally:
            self._queues.discard(queue)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._detach()
        self._listeners.clear()
        for queue in self._queues:
            queue.put_nowait(None)

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        view = build_view_model(snapshot)
        self._latest = view
        for queue in self._queues:
            queue.put_nowait(view)
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                _logger.debug("View listener failed", exc_info=True)
