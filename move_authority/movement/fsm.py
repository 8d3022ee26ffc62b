from __future__ import annotations

from functools import cache

from statemachine import State, StateMachine

from move_authority.api.models import LocomotionState


class LocomotionFSM(StateMachine):
    """Transition legality between locomotion states.

    - grounded states (idle/walk/run) interconvert freely
    - any grounded state may jump, or fall off an edge
    - a jump turns into a fall once the apex is passed
    - airborne states may land on any grounded state

    There is deliberately no fall -> jump edge. Physics is not checked here;
    the per-state rules in `states.py` do that once the edge is known to exist.
    """

    idle = State(LocomotionState.idle.value, value=LocomotionState.idle.value, initial=True)
    walk = State(LocomotionState.walk.value, value=LocomotionState.walk.value)
    run = State(LocomotionState.run.value, value=LocomotionState.run.value)
    jump = State(LocomotionState.jump.value, value=LocomotionState.jump.value)
    fall = State(LocomotionState.fall.value, value=LocomotionState.fall.value)

    to_idle = walk.to(idle) | run.to(idle) | jump.to(idle) | fall.to(idle)
    to_walk = idle.to(walk) | run.to(walk) | jump.to(walk) | fall.to(walk)
    to_run = idle.to(run) | walk.to(run) | jump.to(run) | fall.to(run)
    to_jump = idle.to(jump) | walk.to(jump) | run.to(jump)
    to_fall = idle.to(fall) | walk.to(fall) | run.to(fall) | jump.to(fall)

    def __init__(self, start: LocomotionState = LocomotionState.idle):
        super().__init__(start_value=start.value)

    @property
    def locomotion_state(self) -> LocomotionState:
        return LocomotionState(str(self.current_state.value))

    def reachable_states(self) -> frozenset[LocomotionState]:
        return frozenset(LocomotionState(str(t.target.value)) for t in self.current_state.transitions)


@cache
def allowed_targets(from_state: LocomotionState) -> frozenset[LocomotionState]:
    return LocomotionFSM(from_state).reachable_states()


def is_transition_allowed(from_state: LocomotionState, to_state: LocomotionState) -> bool:
    """Same-state is not a transition and is always allowed."""

    if from_state == to_state:
        return True
    return to_state in allowed_targets(from_state)
