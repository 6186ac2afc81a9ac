from __future__ import annotations

import redis

from snake_arena.infra.settings import get_redis_url


def create_redis() -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes; the store compares str values.
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)
