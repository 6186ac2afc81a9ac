from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket, status

from snake_arena.api.models import ScoreboardUpdated
from snake_arena.errors import MissingContext
from snake_arena.scoreboard_store import require_context


logger = logging.getLogger(__name__)


class ScoreboardHub:
    """Live comment feeds, grouped by context id.

    A feed joins with `subscribe` and leaves with `unsubscribe`. The score route
    calls `publish` once a submission is stored. Only scoreboard events go
    through here; the simulation never leaves the client.
    """

    def __init__(self) -> None:
        self._feeds: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def subscribe(self, context_id: str, websocket: WebSocket) -> str | None:
        """Accept the socket under its normalized context id.

        A blank context is refused with a policy-violation close and None.
        """

        try:
            context_id = require_context(context_id)
        except MissingContext:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return None

        await websocket.accept()
        async with self._lock:
            self._feeds[context_id].add(websocket)
        return context_id

    async def unsubscribe(self, context_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            feeds = self._feeds.get(context_id)
            if feeds is None:
                return
            feeds.discard(websocket)
            if not feeds:
                del self._feeds[context_id]

    async def publish(self, event: ScoreboardUpdated) -> int:
        """Send `event` to every feed of its context; returns how many got it."""

        async with self._lock:
            feeds = list(self._feeds.get(event.context_id, ()))
        if not feeds:
            return 0

        payload = event.model_dump(mode="json", by_alias=True, exclude_none=True)
        results = await asyncio.gather(*(ws.send_json(payload) for ws in feeds), return_exceptions=True)

        stale = [ws for ws, res in zip(feeds, results) if isinstance(res, Exception)]
        for ws in stale:
            await self.unsubscribe(event.context_id, ws)
        if stale:
            logger.debug("dropped %d stale feeds for %s", len(stale), event.context_id)
        return len(feeds) - len(stale)


hub = ScoreboardHub()
