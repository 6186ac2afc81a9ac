from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from snake_arena.api.deps import CONTEXT_HEADER, DISPLAY_NAME_HEADER
from snake_arena.api.models import CommentsOk, ErrorResponse, InitOk, SubmitOk
from snake_arena.infra.settings import get_api_url


T = TypeVar("T", bound=BaseModel)


class ScoreboardUnavailable(Exception):
    """Any failure talking to the scoreboard: network, HTTP status, or payload shape."""


class ScoreboardClient:
    """Async client for the scoreboard endpoints.

    `transport` is passed straight to httpx, so tests can point the client at the
    ASGI app in-process.
    """

    def __init__(
        self,
        *,
        context_id: str,
        display_name: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 5.0,
    ) -> None:
        headers = {CONTEXT_HEADER: context_id}
        if display_name:
            headers[DISPLAY_NAME_HEADER] = display_name
        self._http = httpx.AsyncClient(
            base_url=base_url or get_api_url(),
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ScoreboardClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def init(self) -> InitOk:
        return await self._request("GET", "/api/snake/init", InitOk)

    async def comments(self) -> CommentsOk:
        return await self._request("GET", "/api/snake/comments", CommentsOk)

    async def submit(self, score: int, message: str | None = None) -> SubmitOk:
        body: dict[str, Any] = {"score": score}
        if message is not None:
            body["message"] = message
        return await self._request("POST", "/api/snake/score", SubmitOk, json=body)

    async def _request(self, method: str, path: str, model: type[T], **kwargs: Any) -> T:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ScoreboardUnavailable(f"{method} {path}: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ScoreboardUnavailable(f"{method} {path}: HTTP {resp.status_code}, body is not JSON") from e

        if resp.is_error:
            try:
                err = ErrorResponse.model_validate(data)
                detail = err.message
            except ValidationError:
                detail = "unexpected error payload"
            raise ScoreboardUnavailable(f"{method} {path}: HTTP {resp.status_code}: {detail}")

        try:
            return model.model_validate(data)
        except ValidationError as e:
            # Wrong `type` discriminant or a malformed body.
            raise ScoreboardUnavailable(f"{method} {path}: unexpected response") from e
