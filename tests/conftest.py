from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    This makes REDIS_URL available to the live-Redis tests without needing to
    export it in your shell. In CI, `.env` is only loaded when explicitly
    opted-in with SNAKE_ARENA_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("SNAKE_ARENA_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture()
def fake_redis():
    import fakeredis

    # Own server per test so no state leaks between tests.
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture()
def client_and_redis(fake_redis):
    """FastAPI TestClient with the Redis dependency swapped for fakeredis."""

    from fastapi.testclient import TestClient

    from snake_arena.api.deps import get_redis
    from snake_arena.main import app

    def _override() -> Generator:
        yield fake_redis

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, fake_redis
    app.dependency_overrides.clear()
