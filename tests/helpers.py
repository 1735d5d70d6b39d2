from __future__ import annotations

import asyncio
from typing import Any

import aiohttp


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        body: str | bytes = "",
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> None:
        self.status = status
        self._body = body
        self.headers = headers or {}
        self._json_body = json_body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                None, (), status=self.status, message="error"
            )

    async def text(self, **kwargs: Any) -> str:
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8", kwargs.get("errors", "strict"))
        return self._body

    async def json(self, **kwargs: Any) -> Any:
        return self._json_body


class FakeSession:
    """
    Stands in for aiohttp.ClientSession. Each queued item is either a
    FakeResponse or an exception raised when the request is made.
    """

    def __init__(self, *responses: FakeResponse | BaseException) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def _next(self, method: str, url: str, kwargs: dict[str, Any]) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("GET", url, kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("POST", url, kwargs)


def timeout_error() -> asyncio.TimeoutError:
    return asyncio.TimeoutError()
