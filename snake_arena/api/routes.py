from __future__ import annotations

import redis
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from snake_arena.api.deps import get_context_id, get_display_name, get_redis
from snake_arena.api.models import CommentsOk, InitOk, ScoreboardUpdated, SubmitOk, SubmitScoreRequest
from snake_arena.scoreboard_store import list_comments, load_scoreboard, submit_score
from snake_arena.websocket_hub import hub

router = APIRouter()


@router.websocket("/ws/snake/{context_id}")
async def scoreboard_feed_ws(
    websocket: WebSocket,
    context_id: str,
    r: redis.Redis = Depends(get_redis),
) -> None:
    context = await hub.subscribe(context_id, websocket)
    if context is None:
        return

    try:
        # Every inbound frame asks for a fresh comment snapshot; the first is sent unasked.
        while True:
            snapshot = list_comments(r=r, context_id=context)
            await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await hub.unsubscribe(context, websocket)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/snake/init", response_model=InitOk)
async def snake_init_route(
    context_id: str = Depends(get_context_id),
    username: str = Depends(get_display_name),
    r: redis.Redis = Depends(get_redis),
) -> InitOk:
    return load_scoreboard(r=r, context_id=context_id, username=username)


@router.get("/api/snake/comments", response_model=CommentsOk)
async def snake_comments_route(
    context_id: str = Depends(get_context_id),
    r: redis.Redis = Depends(get_redis),
) -> CommentsOk:
    return list_comments(r=r, context_id=context_id)


@router.post("/api/snake/score", response_model=SubmitOk, response_model_exclude_none=True)
async def snake_score_route(
    payload: SubmitScoreRequest,
    context_id: str = Depends(get_context_id),
    username: str = Depends(get_display_name),
    r: redis.Redis = Depends(get_redis),
) -> SubmitOk:
    result = submit_score(
        r=r,
        context_id=context_id,
        username=username,
        score=payload.score,
        message=payload.message,
    )

    event = ScoreboardUpdated(
        type="scoreboard-updated",
        context_id=context_id,
        high_score=result.high_score,
        new_best=result.new_best,
        comment=result.comment,
    )
    await hub.publish(event)
    return result
