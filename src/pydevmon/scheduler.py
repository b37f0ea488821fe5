"""Poll scheduler: drives one-shot fetches and owns push subscriptions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydevmon._redact import redact_for_log
from pydevmon.exceptions import DevmonError, SourceUnavailableError, SubscriptionFailedError
from pydevmon.ingestion.apply import apply_value_to_store
from pydevmon.sources.base import SourceAdapter, Subscription
from pydevmon.state.events import IngestionSource, TelemetryDomain
from pydevmon.state.store import AggregationStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartReport:
    """What ``PollScheduler.start`` set in motion.

    ``subscription_failures`` is the only place a rejected push registration
    is surfaced; the caller decides whether to ``resubscribe``.
    """

    fetching: tuple[TelemetryDomain, ...] = ()
    subscribed: tuple[TelemetryDomain, ...] = ()
    subscription_failures: Mapping[TelemetryDomain, SubscriptionFailedError] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def ok(self) -> bool:
        return not self.subscription_failures


class PollScheduler:
    """Fetch-on-start for one-shot sources, subscribe-on-start for push sources.

    Fetch results flow into the store as they resolve, in whatever order the
    providers answer. No source is re-polled automatically; ``refresh`` runs
    the same path on demand.
    """

    def __init__(
        self,
        store: AggregationStore,
        adapters: Iterable[SourceAdapter],
        *,
        fetch_timeout: float = 10.0,
    ) -> None:
        self._store = store
        self._adapters: dict[TelemetryDomain, SourceAdapter] = {}
        for adapter in adapters:
            if adapter.domain in self._adapters:
                raise DevmonError(f"Duplicate adapter for {adapter.domain}")
            self._adapters[adapter.domain] = adapter
        self._fetch_timeout = fetch_timeout
        self._subscriptions: dict[TelemetryDomain, Subscription] = {}
        self._tasks: set[asyncio.Task[bool]] = set()
        self._started = False
        self._torn_down = False

    @property
    def adapters(self) -> Mapping[TelemetryDomain, SourceAdapter]:
        return MappingProxyType(self._adapters)

    @property
    def subscriptions(self) -> Mapping[TelemetryDomain, Subscription]:
        return MappingProxyType(dict(self._subscriptions))

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    @property
    def pending(self) -> int:
        """Number of fetches still in flight."""
        return len(self._tasks)

    async def start(self) -> StartReport:
        """Fire one fetch per fetch-capable source and subscribe every push source once."""
        if self._started:
            raise DevmonError("Scheduler already started")
        if self._torn_down:
            raise DevmonError("Scheduler already torn down")
        self._started = True

        fetching: list[TelemetryDomain] = []
        for adapter in self._adapters.values():
            if adapter.supports_fetch:
                self._spawn_fetch(adapter, IngestionSource.FETCH)
                fetching.append(adapter.domain)

        subscribed: list[TelemetryDomain] = []
        failures: dict[TelemetryDomain, SubscriptionFailedError] = {}
        for adapter in self._adapters.values():
            if not adapter.supports_subscribe:
                continue
            try:
                await self._subscribe(adapter)
            except SubscriptionFailedError as exc:
                _logger.warning("Subscription failed for %s: %s", adapter.domain, exc)
                failures[adapter.domain] = exc
                continue
            subscribed.append(adapter.domain)

        _logger.debug("Scheduler started fetching=%s subscribed=%s", fetching, subscribed)
        return StartReport(
            fetching=tuple(fetching),
            subscribed=tuple(subscribed),
            subscription_failures=MappingProxyType(failures),
        )

    async def refresh(self, domain: TelemetryDomain | None = None) -> dict[TelemetryDomain, bool]:
        """Re-run ``fetch_once`` for one or every fetch-capable domain.

        Returns, per domain, whether a value reached the store.
        """
        if self._torn_down:
            raise DevmonError("Scheduler already torn down")
        if domain is not None:
            adapter = self._adapters.get(domain)
            if adapter is None or not adapter.supports_fetch:
                raise DevmonError(f"No fetch-capable source for {domain}")
            targets = [adapter]
        else:
            targets = [adapter for adapter in self._adapters.values() if adapter.supports_fetch]

        tasks = [self._spawn_fetch(adapter, IngestionSource.REFRESH) for adapter in targets]
        results = await asyncio.gather(*tasks)
        return {adapter.domain: ok for adapter, ok in zip(targets, results, strict=True)}

    async def resubscribe(self, domain: TelemetryDomain) -> Subscription:
        """Retry the push registration for *domain*.

        Raises :class:`SubscriptionFailedError` again if the provider still
        rejects it.
        """
        if self._torn_down:
            raise DevmonError("Scheduler already torn down")
        existing = self._subscriptions.get(domain)
        if existing is not None and not existing.released:
            return existing
        adapter = self._adapters.get(domain)
        if adapter is None or not adapter.supports_subscribe:
            raise DevmonError(f"No push-capable source for {domain}")
        return await self._subscribe(adapter)

    def teardown(self) -> None:
        """Release every subscription exactly once. Safe to call repeatedly."""
        if self._torn_down:
            return
        self._torn_down = True
        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.release()
        _logger.debug(
            "Scheduler torn down released=%d in_flight=%d",
            len(subscriptions),
            len(self._tasks),
        )

    async def wait_idle(self) -> None:
        """Wait for every in-flight fetch to resolve."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn_fetch(self, adapter: SourceAdapter, source: IngestionSource) -> asyncio.Task[bool]:
        # The sequence is taken when the read is issued, not when it resolves.
        sequence = self._store.next_sequence()
        task = asyncio.get_running_loop().create_task(
            self._run_fetch(adapter, source, sequence),
            name=f"pydevmon-fetch-{adapter.domain}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_fetch(self, adapter: SourceAdapter, source: IngestionSource, sequence: int) -> bool:
        domain = adapter.domain
        try:
            value = await asyncio.wait_for(adapter.fetch_once(), self._fetch_timeout)
        except TimeoutError as exc:
            error = SourceUnavailableError(f"{domain}: timed out after {self._fetch_timeout:g}s", domain=domain)
            error.__cause__ = exc
            self._report_unavailable(error)
            return False
        except SourceUnavailableError as exc:
            self._report_unavailable(exc)
            return False
        except Exception as exc:
            _logger.debug("Unexpected %s fetch failure", domain, exc_info=True)
            error = SourceUnavailableError(f"{domain}: {exc}", domain=domain)
            error.__cause__ = exc
            self._report_unavailable(error)
            return False

        if self._torn_down:
            _logger.debug("Discarding %s result resolved after teardown", domain)
            return False
        _logger.debug("%s %s resolved value=%s", domain, source, redact_for_log(value))
        apply_value_to_store(self._store.apply, domain=domain, source=source, value=value, sequence=sequence)
        return True

    def _report_unavailable(self, error: SourceUnavailableError) -> None:
        if self._torn_down:
            return
        _logger.warning("Telemetry source unavailable: %s", error)
        self._store.mark_unavailable(error.domain, str(error))

    async def _subscribe(self, adapter: SourceAdapter) -> Subscription:
        domain = adapter.domain

        def _on_push(value: Any) -> None:
            if self._torn_down:
                return
            apply_value_to_store(
                self._store.apply,
                domain=domain,
                source=IngestionSource.PUSH,
                value=value,
                sequence=self._store.next_sequence(),
            )

        try:
            subscription = await adapter.subscribe(_on_push)
        except SubscriptionFailedError:
            raise
        except Exception as exc:
            raise SubscriptionFailedError(f"{domain}: {exc}", domain=domain) from exc
        if self._torn_down:
            # Registration completed while the session was being torn down.
            subscription.release()
            return subscription
        self._subscriptions[domain] = subscription
        return subscription
