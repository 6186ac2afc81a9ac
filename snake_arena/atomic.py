from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import redis

from snake_arena.errors import ConcurrentUpdateError


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CasOutcome:
    value: str | None
    written: bool


def compare_and_set(*, r: redis.Redis, key: str, expected: str | None, new: str) -> bool:
    """Set `key` to `new` only if it still holds `expected` (None = absent).

    Uses WATCH/MULTI/EXEC: the write is dropped if anyone touches the key
    between our read and EXEC. Assumes a client with decode_responses=True.
    """

    with r.pipeline() as pipe:
        try:
            pipe.watch(key)
            current = pipe.get(key)
            if current != expected:
                pipe.unwatch()
                return False
            pipe.multi()
            pipe.set(key, new)
            pipe.execute()
            return True
        except redis.WatchError:
            return False


def update_with_retry(
    *,
    r: redis.Redis,
    key: str,
    compute: Callable[[str | None], str | None],
    attempts: int,
) -> CasOutcome:
    """Read-compute-CAS loop.

    `compute` maps the current raw value to the value to store, or None to leave
    the key alone. It may be called once per attempt, so it must be pure.
    """

    for attempt in range(1, attempts + 1):
        current = r.get(key)
        new = compute(current)
        if new is None:
            return CasOutcome(value=current, written=False)
        if compare_and_set(r=r, key=key, expected=current, new=new):
            return CasOutcome(value=new, written=True)
        logger.info("lost compare-and-set race on %s (attempt %d/%d)", key, attempt, attempts)

    raise ConcurrentUpdateError(f"Too many concurrent updates to {key}")
