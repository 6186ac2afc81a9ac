from __future__ import annotations

import logging
import random

from snake_arena.api.models import MAX_COMMENTS, MAX_MESSAGE_CHARS, Comment, SubmitOk
from snake_arena.engine.board import DOWN, LEFT, RIGHT, UP, CellMarker, Direction, project_board
from snake_arena.engine.client import ScoreboardClient, ScoreboardUnavailable
from snake_arena.engine.scheduler import TickScheduler
from snake_arena.engine import session as rules
from snake_arena.engine.state import GameSession


logger = logging.getLogger(__name__)

KEY_DIRECTIONS: dict[str, Direction] = {
    "ArrowUp": UP,
    "w": UP,
    "ArrowDown": DOWN,
    "s": DOWN,
    "ArrowLeft": LEFT,
    "a": LEFT,
    "ArrowRight": RIGHT,
    "d": RIGHT,
}
CONTROL_KEY = "Shift"

INIT_FAILED_BANNER = "Could not load scoreboard - you can still play!"
SUBMIT_FAILED_BANNER = "Could not save your score - try again later."


class GameController:
    """Owns the live session plus the local view of the shared scoreboard.

    Everything runs on one event loop. The tick callback is the only place the
    snake moves; key handlers only buffer a direction or flip the phase.
    Scoreboard calls are awaited by the caller and never stall the tick loop;
    a failed call leaves a banner and keeps the local game as it was.
    """

    def __init__(self, *, client: ScoreboardClient, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.client = client
        self.session: GameSession = rules.new_session(rng=self.rng)

        self.username: str | None = None
        self.high_score = 0
        self.comments: list[Comment] = []
        self.message = ""
        self.banner: str | None = None
        self.loading = True

        self._scheduler = TickScheduler(interval_ms=self._interval_ms, on_tick=self._on_tick)

    # Simulation

    @property
    def ticking(self) -> bool:
        return self._scheduler.active

    def _interval_ms(self) -> float | None:
        return self.session.tick_ms if self.session.is_running else None

    def _on_tick(self) -> None:
        before = self.session
        self.session = rules.tick(before, rng=self.rng)
        if self.session.is_over and not before.is_over:
            logger.info("game over: score=%d length=%d", self.session.score, self.session.length)

    def _sync_timer(self) -> None:
        if self.session.is_running:
            self._scheduler.start()
        else:
            self._scheduler.cancel()

    def handle_key(self, key: str) -> None:
        if key == CONTROL_KEY:
            self.press_control()
            return
        direction = KEY_DIRECTIONS.get(key)
        if direction is not None:
            self.session = rules.steer(self.session, direction)

    def press_control(self) -> None:
        self.session = rules.press_control(self.session, rng=self.rng)
        self._sync_timer()

    def toggle_pause(self) -> None:
        self.session = rules.toggle_pause(self.session)
        self._sync_timer()

    def new_game(self) -> None:
        """The "play again" / restart button; valid in any phase."""

        self._scheduler.cancel()
        self.session = rules.reset(rng=self.rng)
        self._sync_timer()

    def board(self) -> list[list[CellMarker]]:
        return project_board(self.session.snake, self.session.food)

    async def close(self) -> None:
        await self._scheduler.stop()

    # Scoreboard

    async def load(self) -> None:
        try:
            snapshot = await self.client.init()
        except ScoreboardUnavailable as e:
            logger.warning("failed to init scoreboard: %s", e)
            self.banner = INIT_FAILED_BANNER
        else:
            self.username = snapshot.display_name
            self.high_score = snapshot.high_score
            self.comments = list(snapshot.comments)
        finally:
            self.loading = False

    def set_message(self, text: str) -> None:
        self.message = text[:MAX_MESSAGE_CHARS]

    @property
    def can_share(self) -> bool:
        return self.session.score > 0

    async def share_score(self) -> SubmitOk | None:
        if not self.can_share:
            return None

        # Play may go on while the request is in flight; submit the score as of now.
        score = self.session.score
        try:
            result = await self.client.submit(score, self.message)
        except ScoreboardUnavailable as e:
            logger.warning("failed to share score %d: %s", score, e)
            self.banner = SUBMIT_FAILED_BANNER
            return None

        self.high_score = result.high_score
        if result.comment is not None:
            self.merge_comment(result.comment)
        self.message = ""
        return result

    def merge_comment(self, comment: Comment) -> None:
        if any(c.id == comment.id for c in self.comments):
            return
        self.comments = [*self.comments, comment][-MAX_COMMENTS:]

    async def refresh_comments(self) -> None:
        try:
            latest = await self.client.comments()
        except ScoreboardUnavailable as e:
            logger.warning("failed to refresh comments: %s", e)
            return
        self.comments = list(latest.comments)
