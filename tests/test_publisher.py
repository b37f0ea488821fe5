from __future__ import annotations

import asyncio

import pytest

from pydevmon.models import (
    NOT_AVAILABLE,
    PLACEHOLDER_PENDING,
    PLACEHOLDER_UNAVAILABLE,
    UNKNOWN_MEMORY,
    CardStatus,
    ChargeState,
    DashboardView,
    DeviceIdentity,
    MotionSample,
    NetworkReading,
    PowerReading,
    StorageReading,
)
from pydevmon.publisher import SnapshotPublisher, build_view_model, format_gib, format_memory, format_percent
from pydevmon.state.events import TelemetryDomain
from pydevmon.state.store import AggregationStore


def test_charging_battery_renders_percent_and_label() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.POWER, PowerReading(level_fraction=0.73, charge_state=ChargeState.CHARGING))

    card = build_view_model(store.current_snapshot()).power

    assert card.status == CardStatus.READY
    assert card.level_text == "73%"
    assert card.charge_label == "Charging"


def test_unknown_battery_level_renders_unknown() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.POWER, PowerReading(level_fraction=-1, charge_state=ChargeState.UNPLUGGED))

    card = build_view_model(store.current_snapshot()).power

    assert card.level_text == "Unknown"
    assert card.charge_label == "Unplugged"


def test_storage_renders_gib_with_two_decimals() -> None:
    store = AggregationStore()
    store.update(
        TelemetryDomain.STORAGE,
        StorageReading(free_bytes=10 * 1024**3 + 512 * 1024**2, total_bytes=64 * 1024**3),
    )

    card = build_view_model(store.current_snapshot()).storage

    assert card.free_gib == "10.50"
    assert card.total_gib == "64.00"
    assert card.used_fraction == pytest.approx(1 - 10.5 / 64)


@pytest.mark.parametrize(
    ("fraction", "expected"),
    [(None, "Unknown"), (0.0, "0%"), (0.005, "0%"), (0.999, "100%"), (1.0, "100%")],
)
def test_format_percent(fraction: float | None, expected: str) -> None:
    assert format_percent(fraction) == expected


def test_format_gib_and_memory() -> None:
    assert format_gib(0) == "0.00"
    assert format_gib(1536 * 1024**2) == "1.50"
    assert format_memory(UNKNOWN_MEMORY) == NOT_AVAILABLE
    assert format_memory(8 * 1024**3) == "8.00 GB"


def test_empty_snapshot_renders_pending_placeholders() -> None:
    view = build_view_model(AggregationStore().current_snapshot())

    assert view.version == 0
    for card in (view.power, view.network, view.storage, view.identity, view.motion):
        assert card.status == CardStatus.PENDING
    assert view.power.level_text == PLACEHOLDER_PENDING
    assert view.storage.free_gib == PLACEHOLDER_PENDING
    assert view.identity.model_name == PLACEHOLDER_PENDING


def test_unavailable_domain_renders_unavailable_placeholder() -> None:
    store = AggregationStore()
    store.mark_unavailable(TelemetryDomain.STORAGE, "storage: timed out after 10s")

    card = build_view_model(store.current_snapshot()).storage

    assert card.status == CardStatus.UNAVAILABLE
    assert card.free_gib == PLACEHOLDER_UNAVAILABLE
    assert card.detail == "storage: timed out after 10s"


def test_failed_refresh_keeps_value_as_stale() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.STORAGE, StorageReading(free_bytes=1024**3, total_bytes=2 * 1024**3))
    store.mark_unavailable(TelemetryDomain.STORAGE, "disk busy")

    card = build_view_model(store.current_snapshot()).storage

    assert card.status == CardStatus.STALE
    assert card.free_gib == "1.00"


def test_partial_network_renders_sentinels() -> None:
    store = AggregationStore()
    store.update(
        TelemetryDomain.NETWORK,
        NetworkReading(
            connected=False,
            wifi_enabled=True,
            missing_fields=frozenset({"ssid", "signal_strength"}),
        ),
    )

    card = build_view_model(store.current_snapshot()).network

    assert card.connected == "No"
    assert card.wifi_enabled == "Yes"
    assert card.ssid == NOT_AVAILABLE
    assert card.signal_text == NOT_AVAILABLE
    assert card.ip_address == NOT_AVAILABLE
    assert card.partial


def test_network_signal_renders_percent() -> None:
    store = AggregationStore()
    store.update(
        TelemetryDomain.NETWORK,
        NetworkReading(connected=True, ssid="office", signal_strength=64, ip_address="10.0.0.4", network_type="wifi"),
    )

    card = build_view_model(store.current_snapshot()).network

    assert card.signal_text == "64%"
    assert card.ip_address == "10.0.0.4"
    assert card.network_type == "wifi"
    assert not card.partial


def test_identity_card_joins_os_and_formats_memory() -> None:
    store = AggregationStore()
    store.update(
        TelemetryDomain.IDENTITY,
        DeviceIdentity(model_name="Pixel 8", os_name="Android", os_version="14", total_memory_bytes=8 * 1024**3),
    )

    card = build_view_model(store.current_snapshot()).identity

    assert card.os == "Android 14"
    assert card.total_memory == "8.00 GB"
    assert card.brand == NOT_AVAILABLE


def test_motion_card_carries_history_series() -> None:
    store = AggregationStore(chart_window=2)
    for i in range(3):
        store.update(TelemetryDomain.MOTION, MotionSample(x=float(i), y=0.5, z=-1.0, timestamp=10.0 + i))

    card = build_view_model(store.current_snapshot()).motion

    assert card.x == "2.000"
    assert card.z == "-1.000"
    assert card.x_series == (1.0, 2.0)


def test_subscribe_receives_each_view() -> None:
    store = AggregationStore()
    publisher = SnapshotPublisher(store)
    views: list[DashboardView] = []
    unsubscribe = publisher.subscribe(views.append)

    store.update(TelemetryDomain.POWER, PowerReading(level_fraction=0.5))
    store.update(TelemetryDomain.POWER, PowerReading(level_fraction=0.6))
    unsubscribe()
    store.update(TelemetryDomain.POWER, PowerReading(level_fraction=0.7))

    assert [view.version for view in views] == [1, 2]
    assert publisher.latest.version == 3


@pytest.mark.asyncio
async def test_stream_yields_current_then_updates_until_close() -> None:
    store = AggregationStore()
    publisher = SnapshotPublisher(store)
    stream = publisher.stream()

    first = await stream.__anext__()
    assert first.version == 0

    store.update(TelemetryDomain.POWER, PowerReading(level_fraction=0.4))
    second = await asyncio.wait_for(stream.__anext__(), 1.0)
    assert second.power.level_text == "40%"

    publisher.close()
    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(stream.__anext__(), 1.0)


@pytest.mark.asyncio
async def test_stream_on_closed_publisher_ends_after_current() -> None:
    publisher = SnapshotPublisher(AggregationStore())
    publisher.close()

    views = [view async for view in publisher.stream()]

    assert [view.version for view in views] == [0]
