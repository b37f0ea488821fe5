"""In-memory aggregation store.

This is the only component allowed to merge telemetry updates. Writes go
through a single-writer queue: each update is applied and announced to every
listener before the next one is taken, including updates submitted from
inside a listener.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydevmon.models import DeviceIdentity, MotionSample, NetworkReading, PowerReading, StorageReading
from pydevmon.state.events import IngestionSource, TelemetryDomain, TelemetryUpdate
from pydevmon.state.policy import UpdatePolicy, should_accept_update

_logger = logging.getLogger(__name__)

SnapshotListener = Callable[["Snapshot"], None]


def _empty_mapping() -> Mapping[Any, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the latest value per domain.

    A domain missing from ``values`` has never been read successfully.
    ``unavailable`` holds the reason the most recent attempt for a domain
    failed; it is cleared by the next successful update.
    """

    values: Mapping[TelemetryDomain, Any] = field(default_factory=_empty_mapping)
    unavailable: Mapping[TelemetryDomain, str] = field(default_factory=_empty_mapping)
    motion_history: tuple[MotionSample, ...] = ()
    version: int = 0

    def __contains__(self, domain: object) -> bool:
        return domain in self.values

    def __iter__(self) -> Iterator[TelemetryDomain]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def get(self, domain: TelemetryDomain, default: Any = None) -> Any:
        return self.values.get(domain, default)

    def is_unavailable(self, domain: TelemetryDomain) -> bool:
        return domain in self.unavailable

    @property
    def power(self) -> PowerReading | None:
        return self.values.get(TelemetryDomain.POWER)

    @property
    def network(self) -> NetworkReading | None:
        return self.values.get(TelemetryDomain.NETWORK)

    @property
    def storage(self) -> StorageReading | None:
        return self.values.get(TelemetryDomain.STORAGE)

    @property
    def motion(self) -> MotionSample | None:
        return self.values.get(TelemetryDomain.MOTION)

    @property
    def identity(self) -> DeviceIdentity | None:
        return self.values.get(TelemetryDomain.IDENTITY)


class AggregationStore:
    """Single source of truth for the live telemetry snapshot.

    The store is confined to the event loop thread. Sources that deliver on
    other threads must hop onto the loop first.
    """

    def __init__(
        self,
        *,
        policy: UpdatePolicy = UpdatePolicy.LAST_WRITE_WINS,
        chart_window: int = 60,
    ) -> None:
        self._policy = policy
        self._values: dict[TelemetryDomain, Any] = {}
        self._sequences: dict[TelemetryDomain, int | None] = {}
        self._unavailable: dict[TelemetryDomain, str] = {}
        self._history: deque[MotionSample] = deque(maxlen=chart_window)
        self._listeners: list[SnapshotListener] = []
        self._counter = itertools.count(1)
        self._version = 0
        self._snapshot = Snapshot()
        self._queue: deque[Callable[[], bool]] = deque()
        self._draining = False
        self._closed = False

    @property
    def policy(self) -> UpdatePolicy:
        return self._policy

    @property
    def closed(self) -> bool:
        return self._closed

    def next_sequence(self) -> int:
        """Monotonic sequence number to tag a read with when it is issued."""
        return next(self._counter)

    def current_snapshot(self) -> Snapshot:
        return self._snapshot

    def on_change(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener* for every accepted change; returns an unregister callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def update(
        self,
        domain: TelemetryDomain,
        value: Any,
        *,
        source: IngestionSource = IngestionSource.PUSH,
        sequence: int | None = None,
    ) -> None:
        """Replace the stored value for *domain*. The value is stored as given."""
        self.apply(TelemetryUpdate(domain=domain, source=source, value=value, sequence=sequence))

    def apply(self, update: TelemetryUpdate) -> None:
        """Apply a normalized update. Never raises for a well-formed update."""
        self._submit(lambda: self._apply_now(update))

    def mark_unavailable(self, domain: TelemetryDomain, reason: str) -> None:
        """Record that the latest attempt for *domain* failed."""
        self._submit(lambda: self._mark_now(domain, reason))

    def close(self) -> None:
        """Stop accepting writes. Later updates are discarded."""
        if self._closed:
            return
        self._closed = True
        self._queue.clear()
        self._listeners.clear()

    def _submit(self, op: Callable[[], bool]) -> None:
        if self._closed:
            _logger.debug("Store closed; discarding write")
            return
        self._queue.append(op)
        if self._draining:
            return
        self._draining = True
        try:
            while self._queue and not self._closed:
                op = self._queue.popleft()
                if op():
                    self._publish()
        finally:
            self._draining = False

    def _apply_now(self, update: TelemetryUpdate) -> bool:
        domain = update.domain
        if not should_accept_update(
            policy=self._policy,
            cached_sequence=self._sequences.get(domain),
            incoming_sequence=update.sequence,
        ):
            _logger.debug(
                "Ignoring out-of-order %s update seq=%s (have %s)",
                domain,
                update.sequence,
                self._sequences.get(domain),
            )
            return False

        self._values[domain] = update.value
        if update.sequence is not None:
            current = self._sequences.get(domain)
            self._sequences[domain] = update.sequence if current is None else max(current, update.sequence)
        self._unavailable.pop(domain, None)
        if domain == TelemetryDomain.MOTION and isinstance(update.value, MotionSample):
            self._history.append(update.value)
        return True

    def _mark_now(self, domain: TelemetryDomain, reason: str) -> bool:
        if self._unavailable.get(domain) == reason:
            return False
        self._unavailable[domain] = reason
        return True

    def _publish(self) -> None:
        self._version += 1
        snapshot = Snapshot(
            values=MappingProxyType(dict(self._values)),
            unavailable=MappingProxyType(dict(self._unavailable)),
            motion_history=tuple(self._history),
            version=self._version,
        )
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)
