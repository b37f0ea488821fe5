"""Battery level and charge state source."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from pydevmon.models import PowerReading
from pydevmon.sources.base import SourceAdapter, Subscription, UpdateCallback
from pydevmon.sources.providers import PowerProvider
from pydevmon.state.events import TelemetryDomain

_logger = logging.getLogger(__name__)


class PowerSource(SourceAdapter):
    """Reads level and state once, and listens for changes to either.

    The provider reports level and state on separate listeners; each delivery
    is merged with the last known value of the other half.
    """

    domain = TelemetryDomain.POWER
    supports_fetch = True
    supports_subscribe = True

    def __init__(self, provider: PowerProvider) -> None:
        self._provider = provider
        self._last = PowerReading()

    @property
    def last_reading(self) -> PowerReading:
        return self._last

    async def fetch_once(self) -> PowerReading:
        level, state = await asyncio.gather(
            self._provider.get_battery_level(),
            self._provider.get_battery_state(),
            return_exceptions=True,
        )
        try:
            for result in (level, state):
                if isinstance(result, BaseException):
                    raise result
            reading = PowerReading(level_fraction=level, charge_state=state)
        except Exception as exc:
            raise self._unavailable("battery read failed", exc) from exc
        self._last = reading
        return reading

    async def subscribe(self, on_update: UpdateCallback) -> Subscription:
        def _on_level(level: Any) -> None:
            self._emit(on_update, level_fraction=level, charge_state=self._last.charge_state)

        def _on_state(state: Any) -> None:
            self._emit(on_update, level_fraction=self._last.level_fraction, charge_state=state)

        try:
            level_listener = self._provider.add_level_listener(_on_level)
        except Exception as exc:
            raise self._subscription_failed("level listener rejected", exc) from exc
        try:
            state_listener = self._provider.add_state_listener(_on_state)
        except Exception as exc:
            level_listener.remove()
            raise self._subscription_failed("state listener rejected", exc) from exc

        return Subscription.combine(self.domain, (level_listener.remove, state_listener.remove))

    def _emit(self, on_update: UpdateCallback, *, level_fraction: Any, charge_state: Any) -> None:
        try:
            reading = PowerReading(level_fraction=level_fraction, charge_state=charge_state)
        except ValidationError:
            _logger.debug("Dropping malformed power event", exc_info=True)
            return
        self._last = reading
        on_update(reading)
