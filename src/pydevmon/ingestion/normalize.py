"""Normalization helpers.

Lenient parsing of raw provider values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "N/A":
        return None
    if isinstance(value, bool):
        return float(value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def normalize_level_fraction(value: Any) -> float | None:
    """Battery level as a 0..1 fraction, ``None`` when unknown.

    Providers report ``-1`` when the level cannot be determined; anything
    outside the unit interval is treated the same way.
    """

    parsed = safe_float(value)
    if parsed is None or parsed < 0.0 or parsed > 1.0:
        return None
    return parsed


def normalize_ip_address(value: Any) -> str | None:
    """Drop the unspecified address some platforms report while offline."""

    text = safe_str(value)
    if text is None or text in {"0.0.0.0", "::"}:
        return None
    return text


def normalize_timestamp_seconds(value: Any) -> float | None:
    """Normalize sample timestamps to epoch seconds.

    - Empty/missing -> None
    - < 0 -> None
    - Milliseconds (> 1e11) -> seconds
    """

    ts = safe_float(value)
    if ts is None or ts < 0:
        return None
    if ts > 1e11:
        ts /= 1000.0
    return ts
