from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import pytest

# Arbitrary fixed "now" for tests: 2023-11-14T22:13:20Z in microseconds.
T0 = 1_700_000_000_000_000


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default so a developer's local
    MOVE_AUTHORITY_* overrides can't change test behaviour there.
    """

    # Opt-in in CI with: MOVE_AUTHORITY_LOAD_DOTENV_FOR_TESTS=1
    if os.environ.get("CI") and os.environ.get("MOVE_AUTHORITY_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(autouse=True)
def _default_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Tests assume the full physics pipeline unless they say otherwise.
    monkeypatch.setenv("MOVE_AUTHORITY_VALIDATOR", "standard")


@dataclass
class FakeClock:
    now_us: int = T0

    def advance(self, seconds: float) -> int:
        self.now_us += int(seconds * 1_000_000)
        return self.now_us


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def redis_client():
    import fakeredis

    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def client_and_redis(clock: FakeClock, redis_client):
    """FastAPI TestClient wired to fakeredis and a controllable server clock."""

    from collections.abc import Generator

    import fakeredis
    from fastapi.testclient import TestClient

    from move_authority.api.deps import get_redis, get_server_now
    from move_authority.main import app

    def _override_redis() -> Generator[fakeredis.FakeRedis, None, None]:
        yield redis_client

    def _override_now() -> int:
        return clock.now_us

    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_server_now] = _override_now
    with TestClient(app) as c:
        yield c, redis_client
    app.dependency_overrides.clear()
