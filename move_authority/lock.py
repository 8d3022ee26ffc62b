from __future__ import annotations

from contextlib import contextmanager
from uuid import uuid4

import redis


class PlayerBusyError(ValueError):
    """Another report for the same player is being processed."""


# Delete only if we still hold the lock; an expired lock may have been taken over.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


@contextmanager
def player_lock(*, r: redis.Redis, player_id: str, ttl_ms: int = 5_000):
    """Single-writer-per-player guard around read/validate/write of a movement record.

    A contended lock fails fast instead of queueing: the client reports again
    on its next tick anyway.
    """

    key = f"lock:player:{player_id}"
    token = uuid4().hex
    acquired = r.set(key, token, nx=True, px=ttl_ms)
    if not acquired:
        raise PlayerBusyError("Player is busy")
    try:
        yield
    finally:
        r.register_script(_RELEASE_SCRIPT)(keys=[key], args=[token])
