"""Custom exception hierarchy for pydevmon."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydevmon.state.events import TelemetryDomain


class DevmonError(Exception):
    """Base exception for all pydevmon errors."""


class DevmonConfigError(DevmonError):
    """Invalid or missing configuration."""


class SourceUnavailableError(DevmonError):
    """A provider call failed or timed out during a one-shot fetch."""

    def __init__(self, message: str, *, domain: TelemetryDomain) -> None:
        self.domain = domain
        super().__init__(message)


class SubscriptionFailedError(DevmonError):
    """The provider rejected a push listener registration."""

    def __init__(self, message: str, *, domain: TelemetryDomain) -> None:
        self.domain = domain
        super().__init__(message)


class PartialFieldMissing(DevmonError):
    """A composite source substituted a sentinel for one field.

    Never raised past the source adapter; it is built so the substitution
    can be logged with its cause attached.
    """

    def __init__(self, *, domain: TelemetryDomain, field: str, sentinel: object) -> None:
        self.domain = domain
        self.field = field
        self.sentinel = sentinel
        super().__init__(f"{domain.value}.{field} unavailable, using {sentinel!r}")
