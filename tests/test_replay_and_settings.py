from __future__ import annotations

import pandas as pd
import pytest

from move_authority.core.events import MovementObservation
from move_authority.movement.validator import ValidatorProfile
from move_authority.replay import replay_trace
from move_authority.settings import settings_from_env
from move_authority.streams import RedisStreamObserver, read_observations


def _trace(rows: list[tuple]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=["player_id", "state", "ox", "oy", "oz", "vx", "vy", "vz", "yaw", "timestamp"])


def test_replay_reports_per_row_verdicts() -> None:
    trace = _trace(
        [
            ("p1", "run", 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0),
            ("p1", "run", 5.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 500_000),
            ("p1", "run", 25.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 1_000_000),
            ("p1", "run", 6.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 500_000),
            ("p2", "idle", 1.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0),
        ]
    )

    out = replay_trace(trace)

    assert list(out["accepted"]) == [True, True, False, False, True]
    assert list(out["silent_drop"]) == [False, False, False, True, False]
    assert out.loc[2, "kind"] == "continuation_physics"
    assert out.loc[2, "suspicious_activity_count"] == 1
    assert out.loc[3, "kind"] == "non_monotonic"
    # A silent drop leaves the counter where the rejection put it.
    assert out.loc[3, "suspicious_activity_count"] == 1
    assert out.loc[4, "authoritative_state"] == "idle"


def test_replay_lenient_profile() -> None:
    trace = _trace(
        [
            ("p1", "run", 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0),
            ("p1", "run", 25.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 500_000),
        ]
    )
    out = replay_trace(trace, profile=ValidatorProfile.lenient)
    assert out["accepted"].all()


def test_replay_requires_trace_columns() -> None:
    with pytest.raises(ValueError) as e:
        replay_trace(pd.DataFrame({"player_id": ["p1"]}))
    assert "missing columns" in str(e.value)


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVE_AUTHORITY_VALIDATOR", "lenient")
    monkeypatch.setenv("MOVE_AUTHORITY_LOG_LEVEL", "debug")
    monkeypatch.setenv("MOVE_AUTHORITY_SUSPICIOUS_WARN_THRESHOLD", "3")
    monkeypatch.delenv("MOVE_AUTHORITY_LOCK_TTL_MS", raising=False)

    s = settings_from_env()

    assert s.validator_profile == ValidatorProfile.lenient
    assert s.log_level == "DEBUG"
    assert s.suspicious_warn_threshold == 3
    assert s.lock_ttl_ms == 5000


def test_settings_reject_unknown_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVE_AUTHORITY_VALIDATOR", "paranoid")
    with pytest.raises(ValueError):
        settings_from_env()


def test_stream_observer_publishes_newest_first(redis_client) -> None:
    observer = RedisStreamObserver(r=redis_client, maxlen=100)
    observer.observe(MovementObservation.now(type="FIRST_CONTACT", player_id="p1", accepted=True, reason="", state="idle"))
    observer.observe(
        MovementObservation.now(
            type="MOVE_REJECTED",
            player_id="p1",
            accepted=False,
            reason="too fast",
            kind="continuation_physics",
            state="walk",
        )
    )

    entries = read_observations(r=redis_client, player_id="p1", count=10)

    assert [f["type"] for _, f in entries] == ["MOVE_REJECTED", "FIRST_CONTACT"]
    assert entries[0][1]["accepted"] == "0"
    assert entries[1][1]["kind"] == ""


def test_replay_server_now_column_with_blank_cells() -> None:
    trace = _trace(
        [
            ("p1", "run", 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0),
            ("p1", "run", 1.0, 0.0, 0.0, 5.0, 0.0, 0.0, 0.0, 500_000),
            ("p1", "run", 2.0, 0.0, 0.0, 5.0, 0.0, 0.0, 0.0, 3_000_000),
        ]
    )
    # Blank cells read back from CSV as NaN.
    trace["server_now"] = [float("nan"), float("nan"), 1_000_000.0]

    out = replay_trace(trace)

    assert list(out["accepted"]) == [True, True, False]
    assert out.loc[2, "kind"] == "too_far_future"
