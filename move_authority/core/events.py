from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

ObservationType = Literal[
    "FIRST_CONTACT",
    "HEARTBEAT",
    "MOVE_ACCEPTED",
    "MOVE_DROPPED",
    "MOVE_REJECTED",
]


@dataclass(frozen=True, slots=True)
class MovementObservation:
    """Diagnostic event emitted for every processed report.

    Rejections are reported through these, never raised.
    """

    type: ObservationType
    player_id: str
    accepted: bool
    reason: str
    kind: str | None
    state: str
    ts: datetime

    @staticmethod
    def now(
        *,
        type: ObservationType,
        player_id: str,
        accepted: bool,
        reason: str,
        state: str,
        kind: str | None = None,
    ) -> "MovementObservation":
        return MovementObservation(
            type=type,
            player_id=player_id,
            accepted=accepted,
            reason=reason,
            kind=kind,
            state=state,
            ts=datetime.now(timezone.utc),
        )

    def as_fields(self) -> dict[str, str]:
        return {
            "type": self.type,
            "player_id": self.player_id,
            "accepted": "1" if self.accepted else "0",
            "reason": self.reason,
            "kind": self.kind or "",
            "state": self.state,
            "ts": self.ts.isoformat(),
        }
