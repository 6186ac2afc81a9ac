from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

import redis

from snake_arena.api.models import ErrorResponse
from snake_arena.api.routes import router
from snake_arena.errors import ScoreboardError
from snake_arena.infra.settings import get_log_level

app = FastAPI(title="snake-arena", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(status="error", message=message).model_dump())


@app.exception_handler(ScoreboardError)
async def _scoreboard_error(request: Request, exc: ScoreboardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, ScoreboardError.public_message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(redis.RedisError)
async def _store_error(request: Request, exc: redis.RedisError) -> JSONResponse:
    logger.exception("%s %s: store failure", request.method, request.url.path, exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, ScoreboardError.public_message)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed JSON and schema failures both land here; score gets a specific message.
    if any("score" in err.get("loc", ()) for err in exc.errors()):
        return _error(status.HTTP_400_BAD_REQUEST, "Score must be a non-negative number")
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "snake-arena", "version": "0.1.0"}
