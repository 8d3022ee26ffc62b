from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class MoveErrorKind(StrEnum):
    # timestamp errors
    too_far_future = "too_far_future"
    too_far_past = "too_far_past"
    non_monotonic = "non_monotonic"
    # the requested state is not reachable from the last known one
    transition = "transition"
    # physics checked only at the instant a state is entered
    entry_physics = "entry_physics"
    # physics checked on every report while a state is held
    continuation_physics = "continuation_physics"


TIMESTAMP_ERRORS = frozenset(
    {MoveErrorKind.too_far_future, MoveErrorKind.too_far_past, MoveErrorKind.non_monotonic}
)


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of a single movement check.

    - `ok`: the check passed.
    - `kind`: structured classification of the failure (None when ok).
    - `reason`: human-readable explanation, returned verbatim to callers.
    """

    ok: bool
    reason: str = ""
    kind: MoveErrorKind | None = None

    @property
    def silent_drop(self) -> bool:
        """Duplicate/reordered deliveries are rejected but never punished."""

        return self.kind == MoveErrorKind.non_monotonic

    @property
    def punishable(self) -> bool:
        return not self.ok and not self.silent_drop

    @staticmethod
    def accept() -> "ValidationOutcome":
        return _ACCEPTED

    @staticmethod
    def reject(kind: MoveErrorKind, reason: str) -> "ValidationOutcome":
        return ValidationOutcome(ok=False, reason=reason, kind=kind)


_ACCEPTED = ValidationOutcome(ok=True)
