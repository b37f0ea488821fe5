"""Telemetry value records and view models."""

from pydevmon.models._base import NOT_AVAILABLE, CompositeReading, TelemetryEnum, TelemetryModel
from pydevmon.models.identity import UNKNOWN_MEMORY, DeviceIdentity
from pydevmon.models.motion import MotionSample
from pydevmon.models.network import LinkDetails, NetworkReading, NetworkState
from pydevmon.models.power import ChargeState, PowerReading
from pydevmon.models.storage import StorageReading
from pydevmon.models.view import (
    PLACEHOLDER_PENDING,
    PLACEHOLDER_UNAVAILABLE,
    CardStatus,
    DashboardView,
    IdentityCard,
    MotionCard,
    NetworkCard,
    PowerCard,
    StorageCard,
)

TelemetryValue = PowerReading | NetworkReading | StorageReading | MotionSample | DeviceIdentity
"""Any domain value record the store can hold."""

__all__ = [
    "NOT_AVAILABLE",
    "PLACEHOLDER_PENDING",
    "PLACEHOLDER_UNAVAILABLE",
    "UNKNOWN_MEMORY",
    "CardStatus",
    "ChargeState",
    "CompositeReading",
    "DashboardView",
    "DeviceIdentity",
    "IdentityCard",
    "LinkDetails",
    "MotionCard",
    "MotionSample",
    "NetworkCard",
    "NetworkReading",
    "NetworkState",
    "PowerCard",
    "PowerReading",
    "StorageCard",
    "StorageReading",
    "TelemetryEnum",
    "TelemetryModel",
    "TelemetryValue",
]
