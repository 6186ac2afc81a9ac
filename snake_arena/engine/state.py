from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from snake_arena.engine.board import Cell, Direction


BASE_TICK_MS = 800.0
MIN_TICK_MS = 150.0


class SessionPhase(StrEnum):
    idle = "idle"
    running = "running"
    paused = "paused"
    game_over = "game_over"


@dataclass(frozen=True, slots=True)
class GameSession:
    """One live game, client-local and never persisted.

    Sessions are values: every operation in `snake_arena.engine.session` takes a
    session and returns the next one, so whoever holds the reference owns the game.
    """

    # Head first; pairwise distinct cells.
    snake: tuple[Cell, ...]
    direction: Direction
    # Latest accepted input, committed at the start of the next tick.
    next_direction: Direction
    food: Cell
    color: str
    score: int = 0
    tick_ms: float = BASE_TICK_MS
    phase: SessionPhase = SessionPhase.idle

    @property
    def head(self) -> Cell:
        return self.snake[0]

    @property
    def length(self) -> int:
        return len(self.snake)

    @property
    def is_running(self) -> bool:
        return self.phase == SessionPhase.running

    @property
    def is_over(self) -> bool:
        return self.phase == SessionPhase.game_over
