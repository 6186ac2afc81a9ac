from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace

from snake_arena.engine.board import BOARD_SIZE, RIGHT, Cell, Direction
from snake_arena.engine.fsm import transition
from snake_arena.engine.state import BASE_TICK_MS, MIN_TICK_MS, GameSession, SessionPhase


SPEEDUP_FACTOR = 0.9
FOOD_PLACEMENT_ATTEMPTS = 100

# Used once rejection sampling gives up; may sit on the snake on a crowded board.
FALLBACK_FOOD = Cell(0, 0)


def random_color(rng: random.Random) -> str:
    return f"hsl({rng.randrange(360)} 80% 50%)"


def next_tick_ms(tick_ms: float) -> float:
    return max(tick_ms * SPEEDUP_FACTOR, MIN_TICK_MS)


def place_food(snake: Sequence[Cell], *, rng: random.Random, size: int = BOARD_SIZE) -> Cell:
    occupied = set(snake)
    for _ in range(FOOD_PLACEMENT_ATTEMPTS):
        candidate = Cell(rng.randrange(size), rng.randrange(size))
        if candidate not in occupied:
            return candidate
    return FALLBACK_FOOD


def new_session(*, rng: random.Random) -> GameSession:
    center = BOARD_SIZE // 2
    snake = (Cell(center, center),)
    return GameSession(
        snake=snake,
        direction=RIGHT,
        next_direction=RIGHT,
        food=place_food(snake, rng=rng),
        color=random_color(rng),
        score=0,
        tick_ms=BASE_TICK_MS,
        phase=SessionPhase.idle,
    )


def reset(*, rng: random.Random) -> GameSession:
    """Throw the current game away and start a fresh one straight into running."""

    return transition(new_session(rng=rng), "resume")


def restart(session: GameSession, *, rng: random.Random) -> GameSession:
    """Leave game over for a fresh running session; a no-op in any other phase."""

    if not session.is_over:
        return session
    fresh = replace(new_session(rng=rng), phase=session.phase)
    return transition(fresh, "restart")


def resume(session: GameSession) -> GameSession:
    if session.phase not in (SessionPhase.idle, SessionPhase.paused):
        return session
    return transition(session, "resume")


def pause(session: GameSession) -> GameSession:
    if not session.is_running:
        return session
    return transition(session, "pause")


def toggle_pause(session: GameSession) -> GameSession:
    return pause(session) if session.is_running else resume(session)


def press_control(session: GameSession, *, rng: random.Random) -> GameSession:
    """The single control key: restart after a crash, otherwise pause/resume."""

    if session.is_over:
        return restart(session, rng=rng)
    return toggle_pause(session)


def steer(session: GameSession, direction: Direction) -> GameSession:
    """Buffer a heading for the next tick (last write wins).

    The check is against the committed direction, not the buffered one, so a
    quick "up, left" while heading right is accepted but "left" alone is not.
    """

    if session.is_over:
        return session
    if direction.is_opposite(session.direction):
        return session
    return replace(session, next_direction=direction)


def tick(session: GameSession, *, rng: random.Random) -> GameSession:
    """Advance the simulation by one step.

    Collisions end the game through the FSM; the snake is left as it was so the
    final frame can still be drawn.
    """

    if not session.is_running:
        return session

    direction = session.next_direction
    committed = replace(session, direction=direction)
    new_head = committed.head.shifted(direction)

    if not new_head.in_bounds():
        return transition(committed, "crash")

    if new_head in committed.snake:
        return transition(committed, "crash")

    if new_head == committed.food:
        grown = (new_head, *committed.snake)
        return replace(
            committed,
            snake=grown,
            score=committed.score + 1,
            tick_ms=next_tick_ms(committed.tick_ms),
            color=random_color(rng),
            food=place_food(grown, rng=rng),
        )

    return replace(committed, snake=(new_head, *committed.snake[:-1]))
