from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum

from move_authority.api.models import LocomotionState, MoveReport, PlayerMovementRecord
from move_authority.movement.outcome import ValidationOutcome
from move_authority.movement.primitives import validate_timestamp
from move_authority.movement.states import check_transition, rules_for


@dataclass(frozen=True, slots=True)
class MoveContext:
    """Inputs available to every check for one incoming report."""

    state: LocomotionState
    report: MoveReport
    last: PlayerMovementRecord
    server_now: int

    @property
    def is_transition(self) -> bool:
        return self.state != self.last.state


class MoveCheck(ABC):
    """A small, composable validation unit for an incoming movement report."""

    @abstractmethod
    def check(self, *, ctx: MoveContext) -> ValidationOutcome:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class TimestampCheck(MoveCheck):
    """Applies uniformly to every state and runs before anything else."""

    def check(self, *, ctx: MoveContext) -> ValidationOutcome:
        return validate_timestamp(ctx.last.timestamp, ctx.report.timestamp, ctx.server_now)


@dataclass(frozen=True, slots=True)
class EntryCheck(MoveCheck):
    """Transition legality plus entry physics of the requested state."""

    def check(self, *, ctx: MoveContext) -> ValidationOutcome:
        if not ctx.is_transition:
            return ValidationOutcome.accept()
        return rules_for(ctx.state).can_enter(ctx.last.state, ctx.report, ctx.last)


@dataclass(frozen=True, slots=True)
class TransitionOnlyCheck(MoveCheck):
    """Transition legality without any entry physics."""

    def check(self, *, ctx: MoveContext) -> ValidationOutcome:
        return check_transition(ctx.last.state, ctx.state)


@dataclass(frozen=True, slots=True)
class ContinuationCheck(MoveCheck):
    def check(self, *, ctx: MoveContext) -> ValidationOutcome:
        return rules_for(ctx.state).continues_validly(ctx.report, ctx.last)


@dataclass(frozen=True, slots=True)
class MoveCheckPipeline:
    checks: tuple[MoveCheck, ...]

    def validate(self, *, ctx: MoveContext) -> ValidationOutcome:
        # First failure wins; reasons are never aggregated.
        for c in self.checks:
            outcome = c.check(ctx=ctx)
            if not outcome.ok:
                return outcome
        return ValidationOutcome.accept()


class ValidatorProfile(StrEnum):
    standard = "standard"
    # Timestamp + transition legality only; for finding out whether physics is too strict.
    lenient = "lenient"


VALIDATOR_PROFILES: dict[ValidatorProfile, MoveCheckPipeline] = {
    ValidatorProfile.standard: MoveCheckPipeline(
        checks=(
            TimestampCheck(),
            EntryCheck(),
            ContinuationCheck(),
        )
    ),
    ValidatorProfile.lenient: MoveCheckPipeline(
        checks=(
            TimestampCheck(),
            TransitionOnlyCheck(),
        )
    ),
}


def pipeline_for_profile(profile: ValidatorProfile | str) -> MoveCheckPipeline:
    try:
        key = ValidatorProfile(profile)
    except ValueError as e:
        raise ValueError(f"Unknown validator profile: {profile}") from e
    return VALIDATOR_PROFILES[key]


def validate(
    state: LocomotionState,
    report: MoveReport,
    last: PlayerMovementRecord,
    server_now: int,
    *,
    profile: ValidatorProfile | str = ValidatorProfile.standard,
) -> ValidationOutcome:
    """Validate one report against the last authoritative record.

    1. timestamp bounds and monotonicity
    2. when the state changes: transition legality and entry physics
    3. continuation physics of the reported state

    Returns the first failing check verbatim, or success.
    """

    ctx = MoveContext(state=state, report=report, last=last, server_now=server_now)
    return pipeline_for_profile(profile).validate(ctx=ctx)

