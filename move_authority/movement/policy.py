from __future__ import annotations

from dataclasses import dataclass

from move_authority.api.models import LocomotionState, MoveReport, PlayerMovementRecord, Vec3
from move_authority.core.events import MovementObservation
from move_authority.movement.outcome import ValidationOutcome
from move_authority.movement.primitives import validate_timestamp
from move_authority.movement.validator import ValidatorProfile, validate


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """What to do with the authoritative record for one report.

    - `record`: the record to persist, or None when nothing must be written.
    - `corrected`: the client must snap back to `record.origin`.
    """

    outcome: ValidationOutcome
    record: PlayerMovementRecord | None
    observation: MovementObservation
    corrected: bool = False

    @property
    def accepted(self) -> bool:
        return self.outcome.ok


def _is_heartbeat(state: LocomotionState, report: MoveReport, last: PlayerMovementRecord) -> bool:
    return state == last.state and report.origin == last.origin


def seed_record(*, player_id: str, state: LocomotionState, report: MoveReport) -> PlayerMovementRecord:
    return PlayerMovementRecord(
        player_id=player_id,
        state=state,
        origin=report.origin,
        velocity=report.velocity,
        yaw=report.yaw,
        timestamp=report.timestamp,
        last_valid_origin=report.origin,
        suspicious_activity_count=0,
    )


def decide(
    *,
    player_id: str,
    state: LocomotionState,
    report: MoveReport,
    last: PlayerMovementRecord | None,
    server_now: int,
    profile: ValidatorProfile | str = ValidatorProfile.standard,
) -> PolicyDecision:
    """Apply the accept/drop/revert policy to one report.

    Pure: the caller persists `record` and emits `observation`.
    """

    if last is None:
        return PolicyDecision(
            outcome=ValidationOutcome.accept(),
            record=seed_record(player_id=player_id, state=state, report=report),
            observation=MovementObservation.now(
                type="FIRST_CONTACT",
                player_id=player_id,
                accepted=True,
                reason="first contact",
                state=state.value,
            ),
        )

    if _is_heartbeat(state, report, last):
        return _decide_heartbeat(player_id=player_id, state=state, report=report, last=last, server_now=server_now)

    outcome = validate(state, report, last, server_now, profile=profile)

    if outcome.ok:
        record = last.model_copy(
            update={
                "state": state,
                "origin": report.origin,
                "velocity": report.velocity,
                "yaw": report.yaw,
                "timestamp": report.timestamp,
                "last_valid_origin": report.origin,
                "suspicious_activity_count": 0,
            }
        )
        return PolicyDecision(
            outcome=outcome,
            record=record,
            observation=MovementObservation.now(
                type="MOVE_ACCEPTED",
                player_id=player_id,
                accepted=True,
                reason="accepted",
                state=state.value,
            ),
        )

    kind = outcome.kind.value if outcome.kind is not None else None

    if outcome.silent_drop:
        return PolicyDecision(
            outcome=outcome,
            record=None,
            observation=MovementObservation.now(
                type="MOVE_DROPPED",
                player_id=player_id,
                accepted=False,
                reason=outcome.reason,
                kind=kind,
                state=state.value,
            ),
        )

    return _revert_and_flag(player_id=player_id, state=state, last=last, outcome=outcome)


def _revert_and_flag(
    *,
    player_id: str,
    state: LocomotionState,
    last: PlayerMovementRecord,
    outcome: ValidationOutcome,
) -> PolicyDecision:
    # Revert to the prior authoritative origin; state and timestamp are kept so the
    # next report is measured against the last accepted one.
    record = last.model_copy(
        update={
            "origin": last.origin,
            "velocity": Vec3(),
            "suspicious_activity_count": last.suspicious_activity_count + 1,
        }
    )
    return PolicyDecision(
        outcome=outcome,
        record=record,
        observation=MovementObservation.now(
            type="MOVE_REJECTED",
            player_id=player_id,
            accepted=False,
            reason=outcome.reason,
            kind=outcome.kind.value if outcome.kind is not None else None,
            state=state.value,
        ),
        corrected=True,
    )


def _decide_heartbeat(
    *,
    player_id: str,
    state: LocomotionState,
    report: MoveReport,
    last: PlayerMovementRecord,
    server_now: int,
) -> PolicyDecision:
    # Physics is skipped, but the timestamp must still move forward for the write to happen.
    # Only a repeated heartbeat is dropped quietly; clock skew is punished like any other report.
    outcome = validate_timestamp(last.timestamp, report.timestamp, server_now)
    if outcome.punishable:
        return _revert_and_flag(player_id=player_id, state=state, last=last, outcome=outcome)
    if not outcome.ok:
        return PolicyDecision(
            outcome=outcome,
            record=None,
            observation=MovementObservation.now(
                type="MOVE_DROPPED",
                player_id=player_id,
                accepted=False,
                reason=outcome.reason,
                kind=outcome.kind.value if outcome.kind is not None else None,
                state=state.value,
            ),
        )

    record = last.model_copy(update={"timestamp": report.timestamp, "yaw": report.yaw, "velocity": Vec3()})
    return PolicyDecision(
        outcome=outcome,
        record=record,
        observation=MovementObservation.now(
            type="HEARTBEAT",
            player_id=player_id,
            accepted=True,
            reason="no motion",
            state=state.value,
        ),
    )
