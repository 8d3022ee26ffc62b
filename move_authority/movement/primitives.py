"""Pure helpers shared by the locomotion state rules.

Nothing here touches redis or the clock; every check returns a
`ValidationOutcome` instead of raising.
"""

from __future__ import annotations

import math

from move_authority.api.models import Vec3
from move_authority.movement.constants import (
    MAX_FUTURE_OFFSET_US,
    MAX_PAST_OFFSET_US,
    MICROSECONDS_PER_SECOND,
)
from move_authority.movement.outcome import MoveErrorKind, ValidationOutcome


def horizontal_speed(v: Vec3) -> float:
    return math.hypot(v.x, v.z)


def horizontal_distance(a: Vec3, b: Vec3) -> float:
    return math.hypot(b.x - a.x, b.z - a.z)


def elapsed_seconds(last_ts: int, report_ts: int) -> float:
    return (report_ts - last_ts) / MICROSECONDS_PER_SECOND


def validate_timestamp(last_ts: int, report_ts: int, server_now: int) -> ValidationOutcome:
    """Bound the report's clock against the server clock and the last accepted write.

    Skewed clocks are punished; a timestamp that does not move forward is a
    duplicate or reordered delivery and is dropped silently.
    """

    if report_ts > server_now + MAX_FUTURE_OFFSET_US:
        return ValidationOutcome.reject(
            MoveErrorKind.too_far_future,
            f"Timestamp {report_ts} is too far in the future (server time {server_now})",
        )

    if report_ts < server_now - MAX_PAST_OFFSET_US:
        return ValidationOutcome.reject(
            MoveErrorKind.too_far_past,
            f"Timestamp {report_ts} is too far in the past (server time {server_now})",
        )

    if report_ts <= last_ts:
        return ValidationOutcome.reject(
            MoveErrorKind.non_monotonic,
            f"Timestamp {report_ts} is not after last accepted timestamp {last_ts}",
        )

    return ValidationOutcome.accept()


def validate_minimum_travel_time(
    last_origin: Vec3,
    report_origin: Vec3,
    last_ts: int,
    report_ts: int,
    max_speed: float,
    tolerance_seconds: float,
) -> ValidationOutcome:
    """Reject a displacement that could not be covered at `max_speed` in the elapsed time."""

    distance = horizontal_distance(last_origin, report_origin)
    expected = distance / max_speed
    elapsed = elapsed_seconds(last_ts, report_ts)

    if elapsed < expected - tolerance_seconds:
        return ValidationOutcome.reject(
            MoveErrorKind.continuation_physics,
            f"Moved {distance:.2f}m in {elapsed:.3f}s "
            f"(needs at least {expected:.3f}s at {max_speed:.2f} m/s)",
        )

    return ValidationOutcome.accept()
