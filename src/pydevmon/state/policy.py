"""Per-domain write acceptance policy."""

from __future__ import annotations

from enum import StrEnum


class UpdatePolicy(StrEnum):
    LAST_WRITE_WINS = "last_write_wins"
    MONOTONIC = "monotonic"


def should_accept_update(
    *,
    policy: UpdatePolicy,
    cached_sequence: int | None,
    incoming_sequence: int | None,
) -> bool:
    """Decide whether an incoming value replaces the cached one.

    Policy:
    - LAST_WRITE_WINS: always accept, whatever the arrival order.
    - MONOTONIC: reject a write whose issue sequence is older than the one
      already stored. Writes without a sequence are always accepted.
    """
    if policy is UpdatePolicy.LAST_WRITE_WINS:
        return True
    if incoming_sequence is None or cached_sequence is None:
        return True
    return incoming_sequence >= cached_sequence
