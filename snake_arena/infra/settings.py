from __future__ import annotations

import logging
import os


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def get_api_url() -> str:
    """Base URL the game client talks to."""

    return os.environ.get("SNAKE_ARENA_API_URL", "http://localhost:8000")


def get_log_level() -> int:
    name = os.environ.get("SNAKE_ARENA_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_cas_attempts() -> int:
    raw = os.environ.get("SNAKE_ARENA_CAS_ATTEMPTS", "5")
    try:
        attempts = int(raw)
    except ValueError:
        return 5
    return max(attempts, 1)
