"""Shared fixtures: fake clock, recorded upstream over httpx.MockTransport, settings."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from trendboard.config import Settings

T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class Upstream:
    """Routes by URL path; builds a fresh response per request and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def json(self, path: str, body: Any, status: int = 200) -> None:
        self.routes[path] = lambda _req: httpx.Response(status, json=body)

    def text(self, path: str, body: str, status: int = 200) -> None:
        self.routes[path] = lambda _req: httpx.Response(status, text=body)

    def handler(self, path: str, fn: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = fn

    def calls(self, path: str | None = None) -> int:
        return sum(1 for r in self.requests if path is None or r.url.path == path)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "no route"})
        return route(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


@pytest.fixture(autouse=True)
def no_env_keys(monkeypatch):
    for var in ("TRENDBOARD_GNEWS_KEY", "TRENDBOARD_ODDS_API_KEY", "TRENDBOARD_API_SPORTS_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def settings():
    return Settings.from_dict({"logging": {"level": "WARNING"}})
