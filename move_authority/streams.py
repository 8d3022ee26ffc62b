from __future__ import annotations

import logging
from typing import Protocol, cast

import redis

from move_authority.core.events import MovementObservation

logger = logging.getLogger(__name__)


def observation_stream_key(player_id: str) -> str:
    return f"observations:{player_id}"


class Observer(Protocol):
    def observe(self, event: MovementObservation) -> None: ...


class RedisStreamObserver:
    """Append observations to a capped per-player Redis Stream and to the log."""

    def __init__(self, *, r: redis.Redis, maxlen: int = 1000) -> None:
        self._r = r
        self._maxlen = maxlen

    def observe(self, event: MovementObservation) -> None:
        if event.type == "MOVE_REJECTED":
            logger.warning("Player %s failed validation (%s): %s", event.player_id, event.kind, event.reason)
        elif event.type == "MOVE_DROPPED":
            logger.info("Player %s report dropped (%s): %s", event.player_id, event.kind, event.reason)
        else:
            logger.debug("Player %s %s in state %s", event.player_id, event.type, event.state)

        publish_observation(r=self._r, event=event, maxlen=self._maxlen)


def publish_observation(*, r: redis.Redis, event: MovementObservation, maxlen: int = 1000) -> str:
    stream_id = r.xadd(observation_stream_key(event.player_id), event.as_fields(), maxlen=maxlen, approximate=True)
    return cast(str, stream_id)


def read_observations(*, r: redis.Redis, player_id: str, count: int = 20) -> list[tuple[str, dict[str, str]]]:
    """Most recent observations first."""

    entries = r.xrevrange(observation_stream_key(player_id), count=count)
    return [(cast(str, mid), cast(dict[str, str], fields)) for mid, fields in entries]
