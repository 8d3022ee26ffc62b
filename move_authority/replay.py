"""Offline replay of recorded movement traces through the validation policy.

Trace columns:
    player_id, state, ox, oy, oz, vx, vy, vz, yaw, timestamp[, server_now]

`server_now` defaults to the report's own timestamp when the column or cell is
blank (a trace recorded with a synchronized clock).
"""

from __future__ import annotations

import pandas as pd

from move_authority.api.models import LocomotionState, MoveReport, PlayerMovementRecord, Vec3
from move_authority.movement.policy import decide
from move_authority.movement.validator import ValidatorProfile


TRACE_COLUMNS = ("player_id", "state", "ox", "oy", "oz", "vx", "vy", "vz", "yaw", "timestamp")


def replay_trace(trace: pd.DataFrame, *, profile: ValidatorProfile | str = ValidatorProfile.standard) -> pd.DataFrame:
    missing = [c for c in TRACE_COLUMNS if c not in trace.columns]
    if missing:
        raise ValueError(f"Trace is missing columns: {missing}")

    records: dict[str, PlayerMovementRecord] = {}
    rows: list[dict[str, object]] = []

    for row in trace.itertuples(index=False):
        player_id = str(row.player_id)
        timestamp = int(row.timestamp)
        server_now = getattr(row, "server_now", None)
        server_now = timestamp if server_now is None or pd.isna(server_now) else int(server_now)

        report = MoveReport(
            origin=Vec3(x=float(row.ox), y=float(row.oy), z=float(row.oz)),
            velocity=Vec3(x=float(row.vx), y=float(row.vy), z=float(row.vz)),
            yaw=float(row.yaw),
            timestamp=timestamp,
        )
        decision = decide(
            player_id=player_id,
            state=LocomotionState(str(row.state)),
            report=report,
            last=records.get(player_id),
            server_now=server_now,
            profile=profile,
        )
        if decision.record is not None:
            records[player_id] = decision.record

        current = records[player_id]
        rows.append(
            {
                "player_id": player_id,
                "timestamp": timestamp,
                "state": str(row.state),
                "accepted": decision.accepted,
                "silent_drop": decision.outcome.silent_drop,
                "kind": decision.outcome.kind.value if decision.outcome.kind is not None else "",
                "reason": decision.outcome.reason,
                "authoritative_state": current.state.value,
                "suspicious_activity_count": current.suspicious_activity_count,
            }
        )

    return pd.DataFrame(rows)
