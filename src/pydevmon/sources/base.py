"""Source adapter base class and subscription handle."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, ClassVar

from pydevmon.exceptions import PartialFieldMissing, SourceUnavailableError, SubscriptionFailedError
from pydevmon.state.events import TelemetryDomain

_logger = logging.getLogger(__name__)

UpdateCallback = Callable[[Any], None]


class Subscription:
    """Handle for an active push registration.

    ``release`` runs the underlying removal at most once. Releasing an
    already-released handle only logs a warning.
    """

    def __init__(self, domain: TelemetryDomain, release: Callable[[], None]) -> None:
        self.domain = domain
        self._release = release
        self._released = False

    @classmethod
    def combine(cls, domain: TelemetryDomain, handles: Iterable[Callable[[], None]]) -> Subscription:
        """One handle releasing several provider registrations in order."""
        pending = list(handles)

        def _release_all() -> None:
            for release in pending:
                try:
                    release()
                except Exception:
                    _logger.debug("%s listener removal failed", domain, exc_info=True)

        return cls(domain, _release_all)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            _logger.warning("%s subscription already released", self.domain)
            return
        self._released = True
        try:
            self._release()
        except Exception:
            _logger.debug("%s subscription release failed", self.domain, exc_info=True)

    def __repr__(self) -> str:
        state = "released" if self._released else "active"
        return f"<Subscription {self.domain} {state}>"


class SourceAdapter:
    """Wraps one provider behind a one-shot fetch, a push subscription, or both.

    Adapters only return or emit values; they never touch the store.
    """

    domain: ClassVar[TelemetryDomain]
    supports_fetch: ClassVar[bool] = False
    supports_subscribe: ClassVar[bool] = False

    async def fetch_once(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not support one-shot fetches")

    async def subscribe(self, on_update: UpdateCallback) -> Subscription:
        raise NotImplementedError(f"{type(self).__name__} does not support subscriptions")

    def _unavailable(self, message: str, cause: BaseException | None = None) -> SourceUnavailableError:
        error = SourceUnavailableError(f"{self.domain}: {message}", domain=self.domain)
        error.__cause__ = cause
        return error

    def _subscription_failed(self, message: str, cause: BaseException | None = None) -> SubscriptionFailedError:
        error = SubscriptionFailedError(f"{self.domain}: {message}", domain=self.domain)
        error.__cause__ = cause
        return error

    def _substitute(self, field: str, sentinel: Any, cause: BaseException) -> Any:
        """Record a sentinel substitution for *field* and return the sentinel."""
        missing = PartialFieldMissing(domain=self.domain, field=field, sentinel=sentinel)
        missing.__cause__ = cause
        _logger.debug("%s", missing, exc_info=missing)
        return sentinel
