from __future__ import annotations

import math

import pytest

from move_authority.api.models import Vec3
from move_authority.movement.constants import MAX_RUN_SPEED
from move_authority.movement.outcome import MoveErrorKind
from move_authority.movement.primitives import (
    horizontal_distance,
    horizontal_speed,
    validate_minimum_travel_time,
    validate_timestamp,
)

NOW = 10_000_000


def test_horizontal_speed_ignores_vertical_component() -> None:
    assert horizontal_speed(Vec3(x=3.0, y=100.0, z=4.0)) == pytest.approx(5.0)
    assert horizontal_speed(Vec3(y=-25.0)) == 0.0


def test_horizontal_distance_is_planar() -> None:
    a = Vec3(x=1.0, y=0.0, z=1.0)
    b = Vec3(x=4.0, y=50.0, z=5.0)
    assert horizontal_distance(a, b) == pytest.approx(5.0)
    assert horizontal_distance(b, a) == pytest.approx(5.0)


def test_timestamp_in_window_is_accepted() -> None:
    out = validate_timestamp(NOW - 100_000, NOW, NOW)
    assert out.ok
    assert out.kind is None


def test_timestamp_too_far_in_future_is_punished() -> None:
    out = validate_timestamp(NOW - 100_000, NOW + 1_000_001, NOW)
    assert not out.ok
    assert out.kind == MoveErrorKind.too_far_future
    assert not out.silent_drop
    assert "future" in out.reason

    # Exactly on the edge is still fine.
    assert validate_timestamp(NOW - 100_000, NOW + 1_000_000, NOW).ok


def test_timestamp_too_far_in_past_is_punished() -> None:
    out = validate_timestamp(0, NOW - 5_000_001, NOW)
    assert out.kind == MoveErrorKind.too_far_past
    assert out.punishable

    assert validate_timestamp(0, NOW - 5_000_000, NOW).ok


@pytest.mark.parametrize("report_ts", [NOW - 1, NOW])
def test_non_monotonic_timestamp_is_silently_dropped(report_ts: int) -> None:
    out = validate_timestamp(NOW, report_ts, NOW)
    assert not out.ok
    assert out.kind == MoveErrorKind.non_monotonic
    assert out.silent_drop
    assert not out.punishable


def test_clock_skew_is_checked_before_monotonicity() -> None:
    # Both future-skewed and not after last: the skew wins, so it is punished.
    out = validate_timestamp(NOW + 3_000_000, NOW + 2_000_000, NOW)
    assert out.kind == MoveErrorKind.too_far_future


def test_minimum_travel_time_rejects_teleport() -> None:
    out = validate_minimum_travel_time(Vec3(), Vec3(x=20.0), 0, 500_000, MAX_RUN_SPEED, 0.1)
    assert not out.ok
    assert out.kind == MoveErrorKind.continuation_physics
    assert "20.00m" in out.reason


def test_minimum_travel_time_accepts_plausible_displacement() -> None:
    # 12 m in 1 s at 12 m/s.
    assert validate_minimum_travel_time(Vec3(), Vec3(x=12.0), 0, 1_000_000, MAX_RUN_SPEED, 0.1).ok


def test_minimum_travel_time_uses_tolerance_band() -> None:
    # 12 m needs 1.0 s; 0.95 s is inside the 0.1 s band, 0.85 s is not.
    assert validate_minimum_travel_time(Vec3(), Vec3(z=12.0), 0, 950_000, MAX_RUN_SPEED, 0.1).ok
    assert not validate_minimum_travel_time(Vec3(), Vec3(z=12.0), 0, 850_000, MAX_RUN_SPEED, 0.1).ok


def test_minimum_travel_time_ignores_vertical_displacement() -> None:
    out = validate_minimum_travel_time(Vec3(), Vec3(y=100.0), 0, 10_000, MAX_RUN_SPEED, 0.0)
    assert out.ok
    assert math.isclose(horizontal_distance(Vec3(), Vec3(y=100.0)), 0.0)
