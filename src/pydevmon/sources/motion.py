"""Accelerometer source (push only)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydevmon.models import MotionSample
from pydevmon.sources.base import SourceAdapter, Subscription, UpdateCallback
from pydevmon.sources.providers import MotionProvider
from pydevmon.state.events import TelemetryDomain

_logger = logging.getLogger(__name__)


class MotionSource(SourceAdapter):
    domain = TelemetryDomain.MOTION
    supports_subscribe = True

    def __init__(self, provider: MotionProvider, *, interval_ms: int = 100) -> None:
        self._provider = provider
        self._interval_ms = interval_ms

    async def subscribe(self, on_update: UpdateCallback) -> Subscription:
        def _on_sample(data: Mapping[str, Any] | MotionSample) -> None:
            if isinstance(data, MotionSample):
                on_update(data)
                return
            try:
                sample = MotionSample.model_validate(dict(data))
            except (TypeError, ValueError):
                _logger.debug("Dropping malformed motion sample %r", data, exc_info=True)
                return
            on_update(sample)

        try:
            self._provider.set_update_interval(self._interval_ms)
            listener = self._provider.add_listener(_on_sample)
        except Exception as exc:
            raise self._subscription_failed("accelerometer listener rejected", exc) from exc
        return Subscription(self.domain, listener.remove)
