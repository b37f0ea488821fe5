"""pydevmon - Async aggregation of device telemetry into one live snapshot."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pydevmon")
except PackageNotFoundError:
    __version__ = "0+local"
from pydevmon.config import MonitorConfig, MqttMotionSettings
from pydevmon.exceptions import (
    DevmonConfigError,
    DevmonError,
    PartialFieldMissing,
    SourceUnavailableError,
    SubscriptionFailedError,
)
from pydevmon.models import (
    CardStatus,
    ChargeState,
    DashboardView,
    DeviceIdentity,
    MotionSample,
    NetworkReading,
    PowerReading,
    StorageReading,
    TelemetryValue,
)
from pydevmon.publisher import SnapshotPublisher, build_view_model
from pydevmon.scheduler import PollScheduler, StartReport
from pydevmon.session import MonitorSession
from pydevmon.sources import (
    IdentitySource,
    MotionSource,
    NetworkSource,
    PowerSource,
    SourceAdapter,
    StorageSource,
    Subscription,
)
from pydevmon.state.events import IngestionSource, TelemetryDomain, TelemetryUpdate
from pydevmon.state.policy import UpdatePolicy
from pydevmon.state.store import AggregationStore, Snapshot

__all__ = [
    "__version__",
    "AggregationStore",
    "CardStatus",
    "ChargeState",
    "DashboardView",
    "DevmonConfigError",
    "DevmonError",
    "DeviceIdentity",
    "IdentitySource",
    "IngestionSource",
    "MonitorConfig",
    "MonitorSession",
    "MotionSample",
    "MotionSource",
    "MqttMotionSettings",
    "NetworkReading",
    "NetworkSource",
    "PartialFieldMissing",
    "PollScheduler",
    "PowerReading",
    "PowerSource",
    "Snapshot",
    "SnapshotPublisher",
    "SourceAdapter",
    "SourceUnavailableError",
    "StartReport",
    "StorageReading",
    "StorageSource",
    "Subscription",
    "SubscriptionFailedError",
    "TelemetryDomain",
    "TelemetryUpdate",
    "TelemetryValue",
    "UpdatePolicy",
    "build_view_model",
]
