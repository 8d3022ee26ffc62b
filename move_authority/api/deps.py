from __future__ import annotations

import time
from collections.abc import Generator

import redis

from move_authority.infra.redis_client import create_redis
from move_authority.settings import Settings, settings_from_env


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_server_now() -> int:
    """Authoritative server clock in microseconds since the unix epoch."""

    return time.time_ns() // 1_000


def get_settings() -> Settings:
    return settings_from_env()
