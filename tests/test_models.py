from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from pydevmon.ingestion.apply import apply_value_to_store, build_update
from pydevmon.ingestion.normalize import (
    normalize_ip_address,
    normalize_level_fraction,
    normalize_timestamp_seconds,
    safe_float,
    safe_int,
    safe_str,
)
from pydevmon.models import (
    NOT_AVAILABLE,
    UNKNOWN_MEMORY,
    ChargeState,
    DeviceIdentity,
    MotionSample,
    NetworkReading,
    PowerReading,
    StorageReading,
)
from pydevmon.state.events import IngestionSource, TelemetryDomain, TelemetryUpdate


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("", None), ("N/A", None), ("1.5", 1.5), (True, 1.0), (math.nan, None), (math.inf, None)],
)
def test_safe_float(raw: object, expected: float | None) -> None:
    assert safe_float(raw) == expected


def test_safe_int_and_str() -> None:
    assert safe_int("42.9") == 42
    assert safe_int("abc") is None
    assert safe_str("  wlan0 ") == "wlan0"
    assert safe_str("   ") is None


@pytest.mark.parametrize(("raw", "expected"), [(0.5, 0.5), (-1, None), (1.2, None), ("0.25", 0.25)])
def test_normalize_level_fraction(raw: object, expected: float | None) -> None:
    assert normalize_level_fraction(raw) == expected


def test_normalize_ip_address() -> None:
    assert normalize_ip_address("0.0.0.0") is None
    assert normalize_ip_address("::") is None
    assert normalize_ip_address(" 10.0.0.2 ") == "10.0.0.2"


def test_normalize_timestamp_seconds() -> None:
    assert normalize_timestamp_seconds(1_700_000_000_000) == 1_700_000_000.0
    assert normalize_timestamp_seconds(1_700_000_000) == 1_700_000_000.0
    assert normalize_timestamp_seconds(-5) is None


def test_charge_state_unknown_value_maps_to_unknown() -> None:
    assert ChargeState(99) is ChargeState.UNKNOWN
    assert PowerReading(charge_state="2").charge_state is ChargeState.CHARGING
    assert PowerReading(charge_state=None).charge_state is ChargeState.UNKNOWN


def test_records_are_frozen() -> None:
    reading = PowerReading(level_fraction=0.5)

    with pytest.raises(ValidationError):
        reading.level_fraction = 0.9  # type: ignore[misc]


def test_network_reading_sentinels() -> None:
    reading = NetworkReading(ssid="", signal_strength=None, ip_address="0.0.0.0", network_type=" ")

    assert reading.ssid == NOT_AVAILABLE
    assert reading.signal_strength == NOT_AVAILABLE
    assert reading.ip_address is None
    assert reading.network_type is None
    assert not reading.is_partial


def test_identity_negative_memory_is_unknown() -> None:
    assert DeviceIdentity(total_memory_bytes=-20).total_memory_bytes == UNKNOWN_MEMORY
    assert DeviceIdentity(total_memory_bytes="8589934592").total_memory_bytes == 8 * 1024**3


def test_storage_rejects_free_above_total() -> None:
    with pytest.raises(ValidationError):
        StorageReading(free_bytes=11, total_bytes=10)
    assert StorageReading(free_bytes=0, total_bytes=0).used_fraction is None


def test_motion_sample_requires_numeric_axes() -> None:
    with pytest.raises(ValidationError):
        MotionSample(x="left", y=0, z=0)
    sample = MotionSample(x="0.5", y=0, z=-1, timestamp="bad")
    assert sample.x == 0.5
    assert sample.timestamp > 0


def test_update_is_timezone_aware() -> None:
    update = TelemetryUpdate(
        domain=TelemetryDomain.POWER,
        source=IngestionSource.FETCH,
        value=PowerReading(level_fraction=0.1),
    )

    assert update.observed_at.tzinfo is not None


def test_build_update_checks_domain_type() -> None:
    with pytest.raises(TypeError):
        build_update(
            domain=TelemetryDomain.STORAGE,
            source=IngestionSource.FETCH,
            value=PowerReading(level_fraction=0.1),
        )


def test_apply_value_to_store_passes_update_through() -> None:
    applied: list[TelemetryUpdate] = []

    update = apply_value_to_store(
        applied.append,
        domain=TelemetryDomain.POWER,
        source=IngestionSource.PUSH,
        value=PowerReading(level_fraction=0.3),
        sequence=7,
    )

    assert applied == [update]
    assert update.sequence == 7
