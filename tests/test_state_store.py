from __future__ import annotations

import itertools

import pytest

from pydevmon.models import ChargeState, MotionSample, PowerReading, StorageReading
from pydevmon.state.events import IngestionSource, TelemetryDomain, TelemetryUpdate
from pydevmon.state.policy import UpdatePolicy, should_accept_update
from pydevmon.state.store import AggregationStore, Snapshot


def _power(level: float) -> PowerReading:
    return PowerReading(level_fraction=level, charge_state=ChargeState.CHARGING)


def test_empty_store_has_no_domains() -> None:
    store = AggregationStore()
    snapshot = store.current_snapshot()

    assert len(snapshot) == 0
    assert TelemetryDomain.POWER not in snapshot
    assert snapshot.power is None
    assert snapshot.version == 0


@pytest.mark.parametrize("order", list(itertools.permutations([0.1, 0.5, 0.9])))
def test_last_write_wins_for_any_arrival_order(order: tuple[float, ...]) -> None:
    store = AggregationStore()

    for level in order:
        store.update(TelemetryDomain.POWER, _power(level))

    assert store.current_snapshot().power == _power(order[-1])


def test_last_write_wins_lets_stale_fetch_overwrite_push() -> None:
    store = AggregationStore()
    fetch_seq = store.next_sequence()
    push_seq = store.next_sequence()

    store.update(TelemetryDomain.POWER, _power(0.8), source=IngestionSource.PUSH, sequence=push_seq)
    store.update(TelemetryDomain.POWER, _power(0.2), source=IngestionSource.FETCH, sequence=fetch_seq)

    assert store.current_snapshot().power.level_fraction == 0.2


def test_monotonic_policy_ignores_stale_fetch() -> None:
    store = AggregationStore(policy=UpdatePolicy.MONOTONIC)
    fetch_seq = store.next_sequence()
    push_seq = store.next_sequence()

    store.update(TelemetryDomain.POWER, _power(0.8), source=IngestionSource.PUSH, sequence=push_seq)
    store.update(TelemetryDomain.POWER, _power(0.2), source=IngestionSource.FETCH, sequence=fetch_seq)

    snapshot = store.current_snapshot()
    assert snapshot.power.level_fraction == 0.8
    assert snapshot.version == 1


def test_monotonic_policy_is_per_domain() -> None:
    store = AggregationStore(policy=UpdatePolicy.MONOTONIC)
    old = store.next_sequence()
    new = store.next_sequence()

    store.update(TelemetryDomain.POWER, _power(0.5), sequence=new)
    store.update(TelemetryDomain.STORAGE, StorageReading(free_bytes=1, total_bytes=2), sequence=old)

    assert TelemetryDomain.STORAGE in store.current_snapshot()


def test_should_accept_update_without_sequences() -> None:
    assert should_accept_update(policy=UpdatePolicy.MONOTONIC, cached_sequence=None, incoming_sequence=3)
    assert should_accept_update(policy=UpdatePolicy.MONOTONIC, cached_sequence=5, incoming_sequence=None)
    assert not should_accept_update(policy=UpdatePolicy.MONOTONIC, cached_sequence=5, incoming_sequence=4)
    assert should_accept_update(policy=UpdatePolicy.LAST_WRITE_WINS, cached_sequence=5, incoming_sequence=4)


def test_two_listeners_each_see_storage_update_once() -> None:
    store = AggregationStore()
    power = _power(0.4)
    store.update(TelemetryDomain.POWER, power)

    seen_a: list[Snapshot] = []
    seen_b: list[Snapshot] = []
    store.on_change(seen_a.append)
    store.on_change(seen_b.append)

    storage = StorageReading(free_bytes=10 * 1024**3, total_bytes=64 * 1024**3)
    store.update(TelemetryDomain.STORAGE, storage)

    assert len(seen_a) == 1
    assert len(seen_b) == 1
    for snapshot in (seen_a[0], seen_b[0]):
        assert snapshot.storage == storage
        assert snapshot.power == power
        assert set(snapshot) == {TelemetryDomain.POWER, TelemetryDomain.STORAGE}


def test_every_update_is_notified_without_coalescing() -> None:
    store = AggregationStore()
    versions: list[int] = []
    store.on_change(lambda snap: versions.append(snap.version))

    for level in (0.1, 0.1, 0.2):
        store.update(TelemetryDomain.POWER, _power(level))

    assert versions == [1, 2, 3]


def test_failing_listener_does_not_block_others() -> None:
    store = AggregationStore()
    seen: list[int] = []

    def _boom(_snapshot: Snapshot) -> None:
        raise RuntimeError("listener bug")

    store.on_change(_boom)
    store.on_change(lambda snap: seen.append(snap.version))
    store.update(TelemetryDomain.POWER, _power(0.3))

    assert seen == [1]


def test_unregistered_listener_is_not_called() -> None:
    store = AggregationStore()
    seen: list[Snapshot] = []
    remove = store.on_change(seen.append)
    remove()
    remove()

    store.update(TelemetryDomain.POWER, _power(0.3))

    assert seen == []


def test_update_from_listener_is_applied_after_current_notification() -> None:
    store = AggregationStore()
    order: list[tuple[str, int]] = []

    def _first(snapshot: Snapshot) -> None:
        order.append(("first", snapshot.version))
        if snapshot.version == 1:
            store.update(TelemetryDomain.STORAGE, StorageReading(free_bytes=1, total_bytes=2))

    store.on_change(_first)
    store.on_change(lambda snap: order.append(("second", snap.version)))
    store.update(TelemetryDomain.POWER, _power(0.3))

    assert order == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]


def test_snapshot_is_immutable_and_not_changed_by_later_updates() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.POWER, _power(0.3))
    before = store.current_snapshot()

    store.update(TelemetryDomain.POWER, _power(0.6))

    assert before.power.level_fraction == 0.3
    with pytest.raises(TypeError):
        before.values[TelemetryDomain.POWER] = _power(0.9)  # type: ignore[index]


def test_mark_unavailable_keeps_previous_value_and_is_cleared_by_success() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.POWER, _power(0.3))

    store.mark_unavailable(TelemetryDomain.POWER, "battery read failed")
    snapshot = store.current_snapshot()
    assert snapshot.is_unavailable(TelemetryDomain.POWER)
    assert snapshot.power.level_fraction == 0.3

    store.update(TelemetryDomain.POWER, _power(0.4))
    assert not store.current_snapshot().is_unavailable(TelemetryDomain.POWER)


def test_unavailable_domain_without_value_stays_absent() -> None:
    store = AggregationStore()
    store.mark_unavailable(TelemetryDomain.NETWORK, "timed out")

    snapshot = store.current_snapshot()
    assert TelemetryDomain.NETWORK not in snapshot
    assert snapshot.unavailable[TelemetryDomain.NETWORK] == "timed out"


def test_motion_history_is_bounded_by_chart_window() -> None:
    store = AggregationStore(chart_window=3)

    for i in range(5):
        store.update(TelemetryDomain.MOTION, MotionSample(x=float(i), y=0.0, z=1.0, timestamp=100.0 + i))

    history = store.current_snapshot().motion_history
    assert [sample.x for sample in history] == [2.0, 3.0, 4.0]
    assert store.current_snapshot().motion.x == 4.0


def test_closed_store_discards_updates() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.POWER, _power(0.3))
    seen: list[Snapshot] = []
    store.on_change(seen.append)

    store.close()
    store.update(TelemetryDomain.POWER, _power(0.9))
    store.mark_unavailable(TelemetryDomain.POWER, "late")

    snapshot = store.current_snapshot()
    assert snapshot.power.level_fraction == 0.3
    assert not snapshot.unavailable
    assert seen == []


def test_apply_accepts_prebuilt_update() -> None:
    store = AggregationStore()
    update = TelemetryUpdate(
        domain=TelemetryDomain.STORAGE,
        source=IngestionSource.FETCH,
        value=StorageReading(free_bytes=5, total_bytes=10),
    )

    store.apply(update)

    assert store.current_snapshot().storage.free_bytes == 5


def test_update_stores_value_as_given() -> None:
    store = AggregationStore()
    store.update(TelemetryDomain.POWER, _power(0.3))
    seen: list[Snapshot] = []
    store.on_change(seen.append)

    store.update(TelemetryDomain.POWER, None)

    snapshot = store.current_snapshot()
    assert TelemetryDomain.POWER in snapshot
    assert snapshot.power is None
    assert [snap.version for snap in seen] == [2]
