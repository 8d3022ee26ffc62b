from __future__ import annotations

from datetime import UTC, datetime

import redis

from move_authority.api.models import PlayerMovementRecord


PLAYERS_SET_KEY = "moveauth:players"
RECORD_KEY_PREFIX = "moveauth:record:"  # + {player_id}


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _record_key(player_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{player_id}"


def save_record(*, r: redis.Redis, record: PlayerMovementRecord) -> None:
    record.last_updated_at = _now()
    pipe = r.pipeline()
    pipe.set(_record_key(record.player_id), record.model_dump_json())
    pipe.sadd(PLAYERS_SET_KEY, record.player_id)
    pipe.execute()


def get_record(*, r: redis.Redis, player_id: str) -> PlayerMovementRecord | None:
    raw = r.get(_record_key(player_id))
    if not raw:
        return None
    return PlayerMovementRecord.model_validate_json(raw)


def delete_record(*, r: redis.Redis, player_id: str) -> bool:
    pipe = r.pipeline()
    pipe.delete(_record_key(player_id))
    pipe.srem(PLAYERS_SET_KEY, player_id)
    deleted, _ = pipe.execute()
    return bool(deleted)


def list_player_ids(*, r: redis.Redis) -> list[str]:
    return sorted(r.smembers(PLAYERS_SET_KEY))
