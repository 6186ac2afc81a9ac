from __future__ import annotations

import logging
import math
from datetime import UTC, datetime
from uuid import uuid4

import redis
from pydantic import TypeAdapter, ValidationError

from snake_arena.api.models import MAX_COMMENTS, MAX_MESSAGE_CHARS, Comment, CommentsOk, InitOk, SubmitOk
from snake_arena.atomic import update_with_retry
from snake_arena.errors import InvalidSubmission, MissingContext
from snake_arena.infra.settings import get_cas_attempts


logger = logging.getLogger(__name__)

KEY_PREFIX = "snake:"  # + {context_id}:highscore | {context_id}:comments

_COMMENT_LOG = TypeAdapter(list[Comment])


def _now() -> datetime:
    return datetime.now(tz=UTC)


def high_score_key(context_id: str) -> str:
    return f"{KEY_PREFIX}{context_id}:highscore"


def comments_key(context_id: str) -> str:
    return f"{KEY_PREFIX}{context_id}:comments"


def require_context(context_id: str | None) -> str:
    if context_id is None or not context_id.strip():
        raise MissingContext()
    return context_id.strip()


def _parse_high_score(raw: str | None, *, key: str) -> int:
    if not raw:
        return 0
    try:
        return max(int(raw), 0)
    except ValueError:
        logger.warning("ignoring non-integer high score %r stored at %s", raw, key)
        return 0


def _parse_comments(raw: str | None, *, key: str) -> list[Comment]:
    """Decode a stored comment log; anything malformed degrades to an empty log."""

    if not raw:
        return []
    try:
        return _COMMENT_LOG.validate_json(raw)
    except ValidationError as e:
        logger.warning("failed to parse stored comments at %s: %s", key, e.errors(include_url=False)[:3])
        return []


def _dump_comments(comments: list[Comment]) -> str:
    return _COMMENT_LOG.dump_json(comments, by_alias=True).decode()


def read_high_score(*, r: redis.Redis, context_id: str) -> int:
    key = high_score_key(context_id)
    return _parse_high_score(r.get(key), key=key)


def read_comments(*, r: redis.Redis, context_id: str) -> list[Comment]:
    key = comments_key(context_id)
    return _parse_comments(r.get(key), key=key)


def load_scoreboard(*, r: redis.Redis, context_id: str, username: str) -> InitOk:
    """Read-only snapshot used to seed a client before its first frame."""

    return InitOk(
        type="init-ok",
        display_name=username,
        high_score=read_high_score(r=r, context_id=context_id),
        comments=read_comments(r=r, context_id=context_id),
    )


def list_comments(*, r: redis.Redis, context_id: str) -> CommentsOk:
    return CommentsOk(type="comments-ok", comments=read_comments(r=r, context_id=context_id))


def normalize_message(message: str | None) -> str:
    if not isinstance(message, str):
        return ""
    return message.strip()[:MAX_MESSAGE_CHARS]


def validate_score(score: object) -> int:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise InvalidSubmission()
    if not math.isfinite(score) or score < 0:
        raise InvalidSubmission()
    if score != int(score):
        raise InvalidSubmission("Score must be a whole number")
    return int(score)


def new_comment(*, username: str, score: int, message: str) -> Comment:
    return Comment(
        id=uuid4().hex,
        username=username,
        score=score,
        message=message[:MAX_MESSAGE_CHARS],
        created_at=_now(),
    )


def append_comment(comments: list[Comment], comment: Comment, *, cap: int = MAX_COMMENTS) -> list[Comment]:
    """Append and evict from the front so at most `cap` newest entries remain."""

    out = [*comments, comment]
    if len(out) > cap:
        out = out[len(out) - cap :]
    return out


def _raise_high_score(*, r: redis.Redis, context_id: str, score: int, attempts: int) -> tuple[int, bool]:
    key = high_score_key(context_id)

    def _compute(raw: str | None) -> str | None:
        if score > _parse_high_score(raw, key=key):
            return str(score)
        return None

    outcome = update_with_retry(r=r, key=key, compute=_compute, attempts=attempts)
    return _parse_high_score(outcome.value, key=key), outcome.written


def _store_comment(*, r: redis.Redis, context_id: str, comment: Comment, attempts: int) -> None:
    key = comments_key(context_id)

    def _compute(raw: str | None) -> str:
        return _dump_comments(append_comment(_parse_comments(raw, key=key), comment))

    update_with_retry(r=r, key=key, compute=_compute, attempts=attempts)


def submit_score(
    *,
    r: redis.Redis,
    context_id: str,
    username: str,
    score: object,
    message: str | None = None,
    attempts: int | None = None,
) -> SubmitOk:
    """Reconcile a finished run with the stored scoreboard.

    The high score only ever moves up: it is written through compare-and-set,
    so a concurrent lower submission can't clobber a higher one. The comment
    log is updated the same way. The two keys are still written independently.
    """

    value = validate_score(score)
    context_id = require_context(context_id)
    attempts = attempts or get_cas_attempts()

    high_score, new_best = _raise_high_score(r=r, context_id=context_id, score=value, attempts=attempts)
    if new_best:
        logger.info("new high score %d for context %s by %s", value, context_id, username)

    comment: Comment | None = None
    text = normalize_message(message)
    if text:
        comment = new_comment(username=username, score=value, message=text)
        _store_comment(r=r, context_id=context_id, comment=comment, attempts=attempts)

    return SubmitOk(type="submit-ok", high_score=high_score, new_best=new_best, comment=comment)
