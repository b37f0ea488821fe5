"""Source adapters.

One adapter per telemetry domain, each wrapping a single provider behind a
one-shot fetch, a push subscription, or both.
"""

from pydevmon.sources.base import SourceAdapter, Subscription
from pydevmon.sources.identity import IdentitySource, merge_identity
from pydevmon.sources.motion import MotionSource
from pydevmon.sources.network import NetworkSource, merge_network_reading
from pydevmon.sources.power import PowerSource
from pydevmon.sources.storage import StorageSource

__all__ = [
    "IdentitySource",
    "MotionSource",
    "NetworkSource",
    "PowerSource",
    "SourceAdapter",
    "StorageSource",
    "Subscription",
    "merge_identity",
    "merge_network_reading",
]
