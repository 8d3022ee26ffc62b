from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class LocomotionState(StrEnum):
    idle = "idle"
    walk = "walk"
    run = "run"
    jump = "jump"
    fall = "fall"


GROUNDED_STATES = frozenset({LocomotionState.idle, LocomotionState.walk, LocomotionState.run})
AIRBORNE_STATES = frozenset({LocomotionState.jump, LocomotionState.fall})


class Vec3(BaseModel):
    # NaN compares false against every cap, so it must never reach the physics checks.
    model_config = ConfigDict(allow_inf_nan=False)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"


class MoveReport(BaseModel):
    """What a client claims happened on its side since the last report."""

    model_config = ConfigDict(allow_inf_nan=False)

    origin: Vec3
    velocity: Vec3 = Field(default_factory=Vec3)
    yaw: float = 0.0

    # Microseconds since the unix epoch, client clock.
    timestamp: int

    # Advisory only; the server derives elapsed time from timestamps.
    duration: float = 0.0


class PlayerMovementRecord(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    player_id: str
    state: LocomotionState = LocomotionState.idle
    origin: Vec3 = Field(default_factory=Vec3)
    velocity: Vec3 = Field(default_factory=Vec3)
    yaw: float = 0.0

    # Microseconds since the unix epoch of the last accepted write.
    timestamp: int = 0

    # Rollback anchor; only moves when a report is accepted.
    last_valid_origin: Vec3 = Field(default_factory=Vec3)

    # Punished rejections since the last accepted report. Observability only.
    suspicious_activity_count: int = Field(default=0, ge=0)

    last_updated_at: datetime | None = None


class MoveSubmitRequest(BaseModel):
    state: LocomotionState
    report: MoveReport


class MoveSubmitResponse(BaseModel):
    accepted: bool
    silent_drop: bool = False
    kind: str | None = None
    reason: str = ""
    record: PlayerMovementRecord | None = None


class SessionStartRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    origin: Vec3 = Field(default_factory=Vec3)
    yaw: float = 0.0


class PlayerListResponse(BaseModel):
    player_ids: list[str]
