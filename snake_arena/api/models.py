from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


MAX_MESSAGE_CHARS = 280
MAX_COMMENTS = 20


class WireModel(BaseModel):
    # camelCase on the wire and in Redis, snake_case in Python.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Comment(WireModel):
    id: str
    username: str
    score: int = Field(..., ge=0)
    message: str = Field(..., max_length=MAX_MESSAGE_CHARS)
    created_at: datetime


class SubmitScoreRequest(WireModel):
    score: int = Field(..., ge=0)
    # Trimmed and truncated server side; blank means "no comment".
    message: str | None = None

    @field_validator("score", mode="before")
    @classmethod
    def score_is_not_bool(cls, v: object) -> object:
        # JSON true would otherwise coerce to 1.
        if isinstance(v, bool):
            raise ValueError("score must be a number")
        return v


class InitOk(WireModel):
    type: Literal["init-ok"]
    display_name: str
    high_score: int = Field(..., ge=0)
    comments: list[Comment] = Field(default_factory=list)


class SubmitOk(WireModel):
    type: Literal["submit-ok"]
    high_score: int = Field(..., ge=0)
    new_best: bool
    comment: Comment | None = None


class CommentsOk(WireModel):
    type: Literal["comments-ok"]
    comments: list[Comment] = Field(default_factory=list)


class ScoreboardUpdated(WireModel):
    """Pushed to websocket subscribers of a context after a successful submit."""

    type: Literal["scoreboard-updated"]
    context_id: str
    high_score: int
    new_best: bool
    comment: Comment | None = None


class ErrorResponse(BaseModel):
    status: Literal["error"]
    message: str
