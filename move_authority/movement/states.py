"""Per-locomotion-state entry and continuation rules.

Each state is described by a `StateRules` record:

- `can_enter(from_state, report, last)` runs when the reported state differs
  from the last authoritative one. It always rejects an edge that the
  `LocomotionFSM` does not have, whatever the physics values, and then checks
  the physics that only matter at the instant of entry.
- `continues_validly(report, last)` runs on every report claiming the state.

The registry is an immutable mapping over the closed `LocomotionState` enum,
built once at import.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from move_authority.api.models import (
    AIRBORNE_STATES,
    GROUNDED_STATES,
    LocomotionState,
    MoveReport,
    PlayerMovementRecord,
)
from move_authority.movement.constants import (
    FALL_MIN_HEIGHT,
    GRAVITY,
    JUMP_IMPULSE,
    JUMP_IMPULSE_TOLERANCE,
    JUMP_POSITION_TOLERANCE,
    LANDING_MAX_HEIGHT,
    LANDING_MAX_VERTICAL_SPEED,
    MAX_AIRBORNE_HORIZONTAL_SPEED,
    MAX_GROUND_HEIGHT,
    MAX_IDLE_SPEED,
    MAX_RUN_SPEED,
    MAX_WALK_SPEED,
    TERMINAL_VELOCITY,
    TRAVEL_TIME_TOLERANCE,
)
from move_authority.movement.fsm import is_transition_allowed
from move_authority.movement.outcome import MoveErrorKind, ValidationOutcome
from move_authority.movement.primitives import (
    elapsed_seconds,
    horizontal_speed,
    validate_minimum_travel_time,
)


EntryRule = Callable[[LocomotionState, MoveReport, PlayerMovementRecord], ValidationOutcome]
ContinuationRule = Callable[[MoveReport, PlayerMovementRecord], ValidationOutcome]


class UnknownLocomotionState(RuntimeError):
    """A state outside the closed enum reached the registry; never a client error."""


def _ok() -> ValidationOutcome:
    return ValidationOutcome.accept()


def check_transition(from_state: LocomotionState, to_state: LocomotionState) -> ValidationOutcome:
    if not is_transition_allowed(from_state, to_state):
        return ValidationOutcome.reject(
            MoveErrorKind.transition,
            f"Invalid state transition: {from_state.value} -> {to_state.value}",
        )
    return _ok()


def _check_landing(report: MoveReport) -> ValidationOutcome:
    if report.origin.y > LANDING_MAX_HEIGHT:
        return ValidationOutcome.reject(
            MoveErrorKind.entry_physics,
            f"Landing but y={report.origin.y:.2f} (not on ground)",
        )
    if abs(report.velocity.y) > LANDING_MAX_VERTICAL_SPEED:
        return ValidationOutcome.reject(
            MoveErrorKind.entry_physics,
            f"Landing but vy={report.velocity.y:.2f} (should be ~0)",
        )
    return _ok()


def _check_ground_height(state: LocomotionState, report: MoveReport) -> ValidationOutcome:
    if report.origin.y > MAX_GROUND_HEIGHT:
        return ValidationOutcome.reject(
            MoveErrorKind.continuation_physics,
            f"Grounded state {state.value} but y={report.origin.y:.2f} (flying?)",
        )
    return _ok()


def _check_horizontal_speed(state: LocomotionState, report: MoveReport, max_speed: float) -> ValidationOutcome:
    speed = horizontal_speed(report.velocity)
    if speed > max_speed:
        return ValidationOutcome.reject(
            MoveErrorKind.continuation_physics,
            f"Horizontal speed {speed:.2f} m/s exceeds {max_speed:.2f} m/s for state {state.value}",
        )
    return _ok()


def _check_run_travel_time(report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    return validate_minimum_travel_time(
        last.origin,
        report.origin,
        last.timestamp,
        report.timestamp,
        MAX_RUN_SPEED,
        TRAVEL_TIME_TOLERANCE,
    )


def _first_failure(*checks: Callable[[], ValidationOutcome]) -> ValidationOutcome:
    for check in checks:
        outcome = check()
        if not outcome.ok:
            return outcome
    return _ok()


# --- grounded ---------------------------------------------------------------


def _make_grounded_entry(state: LocomotionState) -> EntryRule:
    def can_enter(from_state: LocomotionState, report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
        transition = check_transition(from_state, state)
        if not transition.ok:
            return transition
        if from_state in AIRBORNE_STATES:
            return _check_landing(report)
        return _ok()

    return can_enter


def _make_grounded_continuation(state: LocomotionState, max_speed: float) -> ContinuationRule:
    def continues_validly(report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
        return _first_failure(
            lambda: _check_ground_height(state, report),
            lambda: _check_horizontal_speed(state, report, max_speed),
        )

    return continues_validly


def _run_can_enter(from_state: LocomotionState, report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    transition = check_transition(from_state, LocomotionState.run)
    if not transition.ok:
        return transition
    if from_state in AIRBORNE_STATES:
        return _check_landing(report)
    return _check_run_travel_time(report, last)


def _run_continues_validly(report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    return _check_run_travel_time(report, last)


# --- airborne ---------------------------------------------------------------


def _jump_can_enter(from_state: LocomotionState, report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    transition = check_transition(from_state, LocomotionState.jump)
    if not transition.ok:
        return transition

    if from_state in GROUNDED_STATES:
        vy = report.velocity.y
        if not (JUMP_IMPULSE - JUMP_IMPULSE_TOLERANCE <= vy <= JUMP_IMPULSE + JUMP_IMPULSE_TOLERANCE):
            return ValidationOutcome.reject(
                MoveErrorKind.entry_physics,
                f"Jump start velocity {vy:.2f} not near expected {JUMP_IMPULSE:.2f}",
            )
    return _ok()


def _check_ballistic_height(report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    elapsed = elapsed_seconds(last.timestamp, report.timestamp)
    expected_y = last.origin.y + JUMP_IMPULSE * elapsed + 0.5 * GRAVITY * elapsed * elapsed
    error = abs(report.origin.y - expected_y)
    if error > JUMP_POSITION_TOLERANCE:
        return ValidationOutcome.reject(
            MoveErrorKind.entry_physics,
            f"Jump height doesn't match trajectory: expected y={expected_y:.2f}, got y={report.origin.y:.2f}",
        )
    return _ok()


def _jump_continues_validly(report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    if report.velocity.y <= 0:
        return ValidationOutcome.reject(
            MoveErrorKind.continuation_physics,
            "Jump state but velocity is downward (should be fall)",
        )

    hspeed = _check_horizontal_speed(LocomotionState.jump, report, MAX_AIRBORNE_HORIZONTAL_SPEED)
    if not hspeed.ok:
        return hspeed

    if last.state == LocomotionState.jump:
        if report.velocity.y >= last.velocity.y:
            return ValidationOutcome.reject(
                MoveErrorKind.continuation_physics,
                f"Jump velocity should decrease due to gravity "
                f"(was {last.velocity.y:.2f}, now {report.velocity.y:.2f})",
            )
        return _check_ballistic_height(report, last)

    return _ok()


def _fall_can_enter(from_state: LocomotionState, report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    transition = check_transition(from_state, LocomotionState.fall)
    if not transition.ok:
        return transition

    if from_state in GROUNDED_STATES and report.origin.y < FALL_MIN_HEIGHT:
        return ValidationOutcome.reject(
            MoveErrorKind.entry_physics,
            f"Fall from {from_state.value} but y={report.origin.y:.2f} (still on ground)",
        )
    return _ok()


def _fall_continues_validly(report: MoveReport, last: PlayerMovementRecord) -> ValidationOutcome:
    vy = report.velocity.y
    if vy > 0:
        return ValidationOutcome.reject(MoveErrorKind.continuation_physics, "Fall state but velocity is upward")
    if abs(vy) > TERMINAL_VELOCITY:
        return ValidationOutcome.reject(
            MoveErrorKind.continuation_physics,
            f"Fall velocity {vy:.2f} exceeds terminal velocity {TERMINAL_VELOCITY:.2f}",
        )
    return _check_horizontal_speed(LocomotionState.fall, report, MAX_AIRBORNE_HORIZONTAL_SPEED)


# --- registry ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StateRules:
    state: LocomotionState
    can_enter: EntryRule
    continues_validly: ContinuationRule


STATE_RULES: Mapping[LocomotionState, StateRules] = MappingProxyType(
    {
        LocomotionState.idle: StateRules(
            state=LocomotionState.idle,
            can_enter=_make_grounded_entry(LocomotionState.idle),
            continues_validly=_make_grounded_continuation(LocomotionState.idle, MAX_IDLE_SPEED),
        ),
        LocomotionState.walk: StateRules(
            state=LocomotionState.walk,
            can_enter=_make_grounded_entry(LocomotionState.walk),
            continues_validly=_make_grounded_continuation(LocomotionState.walk, MAX_WALK_SPEED),
        ),
        LocomotionState.run: StateRules(
            state=LocomotionState.run,
            can_enter=_run_can_enter,
            continues_validly=_run_continues_validly,
        ),
        LocomotionState.jump: StateRules(
            state=LocomotionState.jump,
            can_enter=_jump_can_enter,
            continues_validly=_jump_continues_validly,
        ),
        LocomotionState.fall: StateRules(
            state=LocomotionState.fall,
            can_enter=_fall_can_enter,
            continues_validly=_fall_continues_validly,
        ),
    }
)


def rules_for(state: LocomotionState) -> StateRules:
    rules = STATE_RULES.get(state)
    if rules is None:
        raise UnknownLocomotionState(f"No rules registered for locomotion state: {state!r}")
    return rules
