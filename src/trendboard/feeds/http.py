"""Async HTTP client with a bounded timeout, mapping failures to FeedError."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from trendboard.feeds.errors import (
    FeedTimeout,
    MalformedPayload,
    NeedsConfiguration,
    RateLimited,
    UpstreamError,
)

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; trendboard/0.1)"


class HttpClient:
    """Thin wrapper over httpx.AsyncClient. Every request carries a timeout."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
            follow_redirects=True,
        )

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        *,
        keyed: bool = False,
    ) -> httpx.Response:
        """GET url; raise FeedError subclasses on timeout or non-2xx.

        keyed marks requests that carry a user credential, so 401/403 become
        NeedsConfiguration instead of a generic upstream error.
        """
        try:
            resp = await self._client.get(url, params=_clean(params), headers=headers)
        except httpx.TimeoutException as e:
            raise FeedTimeout(f"timeout after {self.timeout}s: {url}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"request failed: {e}") from e
        status = resp.status_code
        if status == 429:
            raise RateLimited("rate limit exceeded", status=status)
        if keyed and status in (401, 403):
            raise NeedsConfiguration(f"credential rejected ({status})", status=status)
        if status >= 400:
            raise UpstreamError(f"{url} returned {status}", status=status)
        return resp

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        *,
        keyed: bool = False,
    ) -> Any:
        resp = await self.get(url, params=params, headers=headers, keyed=keyed)
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedPayload(f"invalid JSON from {url}") from e

    async def get_text(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        resp = await self.get(url, params=params, headers=headers)
        return resp.text

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def _clean(params: dict[str, Any] | None) -> dict[str, str] | None:
    """Drop None values and render booleans the way query strings expect."""
    if params is None:
        return None
    out: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = str(value)
    return out
