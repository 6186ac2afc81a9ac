from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncGenerator
from dataclasses import replace

import httpx
import pytest
import pytest_asyncio

from snake_arena.api.deps import get_redis
from snake_arena.engine.board import DOWN, RIGHT, UP, Cell, CellMarker
from snake_arena.engine.client import ScoreboardClient, ScoreboardUnavailable
from snake_arena.engine.controller import INIT_FAILED_BANNER, SUBMIT_FAILED_BANNER, GameController
from snake_arena.engine.state import SessionPhase
from snake_arena.main import app
from snake_arena.scoreboard_store import high_score_key


CONTEXT_ID = "t3_snakepost"


@pytest_asyncio.fixture
async def asgi_client(fake_redis) -> AsyncGenerator[ScoreboardClient, None]:
    """Scoreboard client wired to the real app in-process, backed by fakeredis."""

    def _override():
        yield fake_redis

    app.dependency_overrides[get_redis] = _override
    client = ScoreboardClient(
        context_id=CONTEXT_ID,
        display_name="alice",
        base_url="http://test",
        transport=httpx.ASGITransport(app=app),
    )
    try:
        yield client
    finally:
        await client.aclose()
        app.dependency_overrides.clear()


def _offline_client(calls: list[httpx.Request] | None = None) -> ScoreboardClient:
    def _handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        raise httpx.ConnectError("offline", request=request)

    return ScoreboardClient(context_id=CONTEXT_ID, base_url="http://test", transport=httpx.MockTransport(_handler))


def _with_score(controller: GameController, score: int) -> None:
    controller.session = replace(controller.session, score=score)


@pytest.mark.asyncio
async def test_load_seeds_scoreboard(asgi_client: ScoreboardClient, fake_redis) -> None:
    fake_redis.set(high_score_key(CONTEXT_ID), "42")
    game = GameController(client=asgi_client, rng=random.Random(0))

    assert game.loading is True
    await game.load()

    assert game.loading is False
    assert game.username == "alice"
    assert game.high_score == 42
    assert game.comments == []
    assert game.banner is None


@pytest.mark.asyncio
async def test_load_failure_shows_banner_and_still_plays() -> None:
    game = GameController(client=_offline_client(), rng=random.Random(0))

    await game.load()

    assert game.loading is False
    assert game.banner == INIT_FAILED_BANNER
    assert game.high_score == 0
    assert game.comments == []

    game.handle_key("Shift")
    assert game.session.phase == SessionPhase.running
    await game.close()


@pytest.mark.asyncio
async def test_share_requires_positive_score() -> None:
    calls: list[httpx.Request] = []
    game = GameController(client=_offline_client(calls), rng=random.Random(0))

    assert game.can_share is False
    assert await game.share_score() is None
    assert calls == []
    assert game.banner is None


@pytest.mark.asyncio
async def test_share_score_merges_server_result(asgi_client: ScoreboardClient, fake_redis) -> None:
    fake_redis.set(high_score_key(CONTEXT_ID), "3")
    game = GameController(client=asgi_client, rng=random.Random(0))
    await game.load()

    _with_score(game, 7)
    game.set_message("first!")
    result = await game.share_score()

    assert result is not None
    assert result.new_best is True
    assert game.high_score == 7
    assert [c.message for c in game.comments] == ["first!"]
    assert game.comments[0].username == "alice"
    assert game.message == ""

    # Another load sees the same state the submit reported.
    other = GameController(client=asgi_client, rng=random.Random(1))
    await other.load()
    assert other.high_score == 7
    assert other.comments == game.comments


@pytest.mark.asyncio
async def test_share_failure_keeps_local_state() -> None:
    game = GameController(client=_offline_client(), rng=random.Random(0))
    _with_score(game, 5)
    game.set_message("keep me")

    assert await game.share_score() is None

    assert game.banner == SUBMIT_FAILED_BANNER
    assert game.session.score == 5
    assert game.message == "keep me"


@pytest.mark.asyncio
async def test_feed_keeps_last_20(asgi_client: ScoreboardClient) -> None:
    game = GameController(client=asgi_client, rng=random.Random(0))
    _with_score(game, 1)

    for i in range(22):
        game.set_message(f"c{i}")
        await game.share_score()

    assert [c.message for c in game.comments] == [f"c{i}" for i in range(2, 22)]

    await game.refresh_comments()
    assert [c.message for c in game.comments] == [f"c{i}" for i in range(2, 22)]


def test_message_draft_is_capped() -> None:
    game = GameController(client=_offline_client(), rng=random.Random(0))
    game.set_message("y" * 500)
    assert len(game.message) == 280


def test_keys_buffer_direction_and_reject_reversal() -> None:
    game = GameController(client=_offline_client(), rng=random.Random(0))

    game.handle_key("ArrowLeft")
    assert game.session.next_direction == RIGHT

    game.handle_key("w")
    assert game.session.next_direction == UP

    # Still heading right: left is a reversal even with up buffered.
    game.handle_key("a")
    assert game.session.next_direction == UP

    game.handle_key("s")
    assert game.session.next_direction == DOWN

    game.handle_key("Enter")
    assert game.session.next_direction == DOWN


@pytest.mark.asyncio
async def test_control_key_drives_tick_loop() -> None:
    game = GameController(client=_offline_client(), rng=random.Random(0))
    game.session = replace(game.session, tick_ms=10.0, food=Cell(0, 19))
    start = game.session.head

    game.handle_key("Shift")
    assert game.ticking
    await asyncio.sleep(0.06)
    moved = game.session.head
    assert moved.y == start.y
    assert moved.x > start.x

    game.handle_key("Shift")
    assert game.session.phase == SessionPhase.paused
    assert not game.ticking
    await asyncio.sleep(0.03)
    assert game.session.head == moved

    await game.close()


@pytest.mark.asyncio
async def test_loop_stops_on_game_over_and_control_restarts() -> None:
    game = GameController(client=_offline_client(), rng=random.Random(0))
    game.session = replace(game.session, snake=(Cell(19, 4),), tick_ms=1.0, food=Cell(0, 19))

    game.handle_key("Shift")
    for _ in range(100):
        if game.session.is_over:
            break
        await asyncio.sleep(0.005)

    assert game.session.is_over
    await asyncio.sleep(0.01)
    assert not game.ticking
    assert game.session.snake == (Cell(19, 4),)
    assert game.board()[4][19] == CellMarker.snake

    game.handle_key("Shift")
    assert game.session.phase == SessionPhase.running
    assert game.session.snake == (Cell(10, 10),)
    assert game.ticking
    await game.close()


@pytest.mark.asyncio
async def test_client_rejects_unexpected_variant() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"type": "submit-ok", "highScore": 1, "newBest": True})

    client = ScoreboardClient(context_id=CONTEXT_ID, base_url="http://test", transport=httpx.MockTransport(_handler))
    with pytest.raises(ScoreboardUnavailable):
        await client.init()
    await client.aclose()


@pytest.mark.asyncio
async def test_client_surfaces_error_payload() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"status": "error", "message": "context id is required"})

    async with ScoreboardClient(context_id="", base_url="http://test", transport=httpx.MockTransport(_handler)) as client:
        with pytest.raises(ScoreboardUnavailable, match="context id is required"):
            await client.submit(3)
