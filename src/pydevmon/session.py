"""Monitoring session: owns the store, the scheduler and the publisher."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import aiohttp

from pydevmon.config import MonitorConfig
from pydevmon.exceptions import DevmonError
from pydevmon.publisher import SnapshotPublisher
from pydevmon.scheduler import PollScheduler, StartReport
from pydevmon.sources import IdentitySource, MotionSource, NetworkSource, PowerSource, SourceAdapter, StorageSource
from pydevmon.state.events import TelemetryDomain
from pydevmon.state.store import AggregationStore, Snapshot

_logger = logging.getLogger(__name__)

Closer = Callable[[], Awaitable[None] | None]


class MonitorSession:
    """One live monitoring session.

    Usage::

        async with MonitorSession.from_config(config) as session:
            async for view in session.publisher.stream():
                render(view)

    Teardown runs once: every subscription is released, the store stops
    accepting writes, and views stop. It is safe to close a session whose
    start never ran or failed halfway.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        *,
        config: MonitorConfig | None = None,
        closers: Iterable[Closer] = (),
    ) -> None:
        self._config = config or MonitorConfig()
        self.store = AggregationStore(
            policy=self._config.update_policy,
            chart_window=self._config.chart_window,
        )
        self.scheduler = PollScheduler(self.store, adapters, fetch_timeout=self._config.fetch_timeout)
        self.publisher = SnapshotPublisher(self.store)
        self._closers = list(closers)
        self._started = False
        self._closed = False
        self.start_report: StartReport | None = None

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig | None = None,
        *,
        http_session: aiohttp.ClientSession | None = None,
    ) -> MonitorSession:
        """Build a session wired to the local host providers.

        Motion is only available when the MQTT feed is enabled.
        """
        from pydevmon.sources.host import (
            HostIdentityProvider,
            HostNetworkProvider,
            HostPowerProvider,
            HostStorageProvider,
        )

        config = config or MonitorConfig.from_env()
        network = HostNetworkProvider(
            reachability_url=config.reachability_url,
            reachability_timeout=config.reachability_timeout,
            session=http_session,
        )
        adapters: list[SourceAdapter] = [
            PowerSource(HostPowerProvider(poll_interval=config.battery_poll_interval)),
            IdentitySource(HostIdentityProvider()),
            NetworkSource(network),
            StorageSource(HostStorageProvider(config.storage_path)),
        ]
        if config.mqtt_motion_enabled:
            from pydevmon._mqtt import MqttMotionProvider

            adapters.append(MotionSource(MqttMotionProvider(config.mqtt), interval_ms=config.motion_interval_ms))
        return cls(adapters, config=config, closers=[network.close])

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> Snapshot:
        return self.store.current_snapshot()

    async def start(self) -> StartReport:
        if self._closed:
            raise DevmonError("Session already closed")
        if self._started:
            raise DevmonError("Session already started")
        self._started = True
        report = await self.scheduler.start()
        self.start_report = report
        for domain, error in report.subscription_failures.items():
            _logger.warning("Session started without %s updates: %s", domain, error)
        return report

    async def refresh(self, domain: TelemetryDomain | None = None) -> dict[TelemetryDomain, bool]:
        return await self.scheduler.refresh(domain)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.scheduler.teardown()
        self.store.close()
        self.publisher.close()
        for closer in self._closers:
            try:
                result: Any = closer()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.debug("Provider cleanup failed", exc_info=True)

    async def __aenter__(self) -> MonitorSession:
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
