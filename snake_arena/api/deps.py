from __future__ import annotations

from collections.abc import Generator
from typing import Protocol

import redis
from fastapi import Depends, Header, Request

from snake_arena.errors import MissingContext
from snake_arena.infra.redis_client import create_redis


CONTEXT_HEADER = "X-Context-Id"
DISPLAY_NAME_HEADER = "X-Display-Name"
ANONYMOUS = "anonymous"


def get_redis() -> Generator[redis.Redis, None, None]:
    """One client per request, released back to its pool when the request ends."""

    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_context_id(x_context_id: str | None = Header(default=None)) -> str:
    """The hosting post/session every score and comment is scoped to."""

    if x_context_id is None or not x_context_id.strip():
        raise MissingContext()
    return x_context_id.strip()


class IdentityProvider(Protocol):
    def display_name(self, request: Request) -> str | None: ...


class HeaderIdentityProvider:
    """Trusts the display name the hosting platform forwards in a header."""

    def display_name(self, request: Request) -> str | None:
        name = request.headers.get(DISPLAY_NAME_HEADER)
        return name.strip() if name and name.strip() else None


def get_identity_provider() -> IdentityProvider:
    return HeaderIdentityProvider()


def get_display_name(request: Request, provider: IdentityProvider = Depends(get_identity_provider)) -> str:
    return provider.display_name(request) or ANONYMOUS
