from __future__ import annotations

import logging
from dataclasses import dataclass

import redis

from move_authority.api.models import LocomotionState, MoveReport, PlayerMovementRecord, Vec3
from move_authority.core.events import MovementObservation
from move_authority.lock import player_lock
from move_authority.movement.policy import PolicyDecision, decide
from move_authority.record_store import delete_record, get_record, save_record
from move_authority.settings import Settings, settings_from_env
from move_authority.streams import Observer, RedisStreamObserver

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmitResult:
    decision: PolicyDecision
    # Authoritative record after the report was handled (unchanged on a drop).
    record: PlayerMovementRecord | None


def submit_move(
    *,
    r: redis.Redis,
    player_id: str,
    state: LocomotionState,
    report: MoveReport,
    server_now: int,
    settings: Settings | None = None,
    observer: Observer | None = None,
) -> SubmitResult:
    """Entry point for one client movement report.

    Applies a report by:
    - acquiring the per-player lock
    - loading the last authoritative record
    - running the validation pipeline and the accept/drop/revert policy
    - persisting the resulting record, if any
    - emitting an observation

    Rejections are reported through the result and the observer, never raised.
    """

    settings = settings or settings_from_env()
    observer = observer or RedisStreamObserver(r=r, maxlen=settings.observation_stream_maxlen)

    with player_lock(r=r, player_id=player_id, ttl_ms=settings.lock_ttl_ms):
        last = get_record(r=r, player_id=player_id)

        decision = decide(
            player_id=player_id,
            state=state,
            report=report,
            last=last,
            server_now=server_now,
            profile=settings.validator_profile,
        )

        if decision.record is not None:
            save_record(r=r, record=decision.record)

    observer.observe(decision.observation)

    if decision.corrected and decision.record is not None:
        count = decision.record.suspicious_activity_count
        if count > settings.suspicious_warn_threshold:
            logger.error(
                "Player %s has %d consecutive suspicious movement reports (threshold %d)",
                player_id,
                count,
                settings.suspicious_warn_threshold,
            )

    return SubmitResult(decision=decision, record=decision.record if decision.record is not None else last)


def start_session(
    *,
    r: redis.Redis,
    player_id: str,
    server_now: int,
    origin: Vec3 | None = None,
    yaw: float = 0.0,
    settings: Settings | None = None,
    observer: Observer | None = None,
) -> PlayerMovementRecord:
    """Create an idle record for a player who just connected.

    Idempotent: an existing record is returned untouched.
    """

    settings = settings or settings_from_env()
    observer = observer or RedisStreamObserver(r=r, maxlen=settings.observation_stream_maxlen)

    with player_lock(r=r, player_id=player_id, ttl_ms=settings.lock_ttl_ms):
        existing = get_record(r=r, player_id=player_id)
        if existing is not None:
            return existing

        start = origin or Vec3()
        record = PlayerMovementRecord(
            player_id=player_id,
            state=LocomotionState.idle,
            origin=start,
            yaw=yaw,
            timestamp=server_now,
            last_valid_origin=start,
        )
        save_record(r=r, record=record)

    observer.observe(
        MovementObservation.now(
            type="FIRST_CONTACT",
            player_id=player_id,
            accepted=True,
            reason="session started",
            state=record.state.value,
        )
    )
    return record


def end_session(*, r: redis.Redis, player_id: str, settings: Settings | None = None) -> bool:
    settings = settings or settings_from_env()
    with player_lock(r=r, player_id=player_id, ttl_ms=settings.lock_ttl_ms):
        removed = delete_record(r=r, player_id=player_id)
    if removed:
        logger.info("Player %s movement record removed", player_id)
    return removed
