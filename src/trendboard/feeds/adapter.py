"""Generic feed adapter: check cache -> fetch with timeout -> normalize -> write cache.

Each concrete source is a FeedSource value, not a subclass. The adapter is the
error barrier: fetch() never raises, every failure becomes a FeedResult.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from trendboard.feeds.cache import CacheKey, CacheStore, MemoryCache
from trendboard.feeds.errors import NeedsConfiguration, RateLimited
from trendboard.feeds.fallback import FallbackProvider
from trendboard.feeds.result import CacheStatus, FeedResult, FeedStatus
from trendboard.models import CacheEntry

log = structlog.get_logger(__name__)

T = TypeVar("T")

FetchRaw = Callable[[dict[str, Any]], Awaitable[Any]]
Normalize = Callable[[Any, dict[str, Any]], list[Any]]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class FeedSource(Generic[T]):
    """Everything that differs between sources: (fetch_raw, normalize, ttl, fallback)."""

    name: str
    fetch_raw: FetchRaw
    normalize: Normalize
    ttl_ms: int = 0
    item_model: type[BaseModel] | None = None
    fallback: FallbackProvider | None = None
    # Returns False when the source needs a credential that is not configured.
    has_credentials: Callable[[], bool] | None = None
    # Serve the last good payload (STALE) instead of fallback/empty on failure.
    serve_stale_on_error: bool = False
    limit: int | None = None


class FeedAdapter(Generic[T]):
    """One adapter per source; owns the cache namespace named after the source."""

    def __init__(
        self,
        source: FeedSource[T],
        cache: CacheStore | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.source = source
        self.cache = cache if cache is not None else MemoryCache()
        self.clock = clock

    @property
    def name(self) -> str:
        return self.source.name

    def cache_key(self, params: dict[str, Any] | None = None) -> CacheKey:
        return CacheKey.build(self.source.name, params)

    async def fetch(
        self, params: dict[str, Any] | None = None, ttl_ms: int | None = None
    ) -> FeedResult[T]:
        params = dict(params or {})
        ttl = self.source.ttl_ms if ttl_ms is None else ttl_ms
        key = self.cache_key(params)
        now = self.clock()

        cached = self._read_cache(key) if ttl > 0 else None
        if cached is not None and now - cached.fetched_at_millis < ttl:
            log.debug("feed_cache_hit", source=self.name, key=str(key))
            return FeedResult(
                items=self._hydrate(cached.payload),
                status=FeedStatus.OK,
                cache=CacheStatus.HIT,
                fetched_at_millis=cached.fetched_at_millis,
            )

        if self.source.has_credentials is not None and not self.source.has_credentials():
            return self._no_credentials(params)

        try:
            raw = await self.source.fetch_raw(params)
            items = self.source.normalize(raw, params)
        except RateLimited as e:
            log.warning("feed_rate_limited", source=self.name, error=str(e))
            return FeedResult(
                status=FeedStatus.RATE_LIMITED,
                cache=CacheStatus.MISS,
                message="Rate limit exceeded",
            )
        except NeedsConfiguration as e:
            log.warning("feed_needs_configuration", source=self.name, error=str(e))
            return FeedResult(
                status=FeedStatus.NEEDS_CONFIGURATION,
                cache=CacheStatus.MISS,
                message=str(e),
            )
        except Exception as e:
            log.warning("feed_fetch_failed", source=self.name, error=str(e))
            return self._degrade(params, key, str(e))

        if self.source.limit is not None:
            items = items[: self.source.limit]
        fetched_at = self.clock()
        if ttl > 0 or self.source.serve_stale_on_error:
            self._write_cache(key, CacheEntry(payload=items, fetched_at_millis=fetched_at))
        return FeedResult(
            items=items,
            status=FeedStatus.OK,
            cache=CacheStatus.MISS if ttl > 0 else CacheStatus.BYPASS,
            fetched_at_millis=fetched_at,
        )

    def clear(self) -> int:
        """Drop every cache entry for this source (manual refresh, key rotation)."""
        removed = self.cache.clear(self.source.name)
        log.info("feed_cache_cleared", source=self.name, removed=removed)
        return removed

    def _read_cache(self, key: CacheKey) -> CacheEntry | None:
        try:
            return self.cache.get(key)
        except Exception as e:
            log.warning("feed_cache_read_failed", source=self.name, error=str(e))
            return None

    def _write_cache(self, key: CacheKey, entry: CacheEntry) -> None:
        try:
            self.cache.set(key, entry)
        except Exception as e:
            log.warning("feed_cache_write_failed", source=self.name, error=str(e))

    def _hydrate(self, payload: list[Any]) -> list[T]:
        """Persistent stores hand back dicts; rebuild canonical models, skipping bad rows."""
        model = self.source.item_model
        if model is None:
            return list(payload)
        out: list[Any] = []
        for row in payload:
            if isinstance(row, model):
                out.append(row)
                continue
            try:
                out.append(model.model_validate(row))
            except ValidationError as e:
                log.warning("skip_cached_item", source=self.name, error=str(e))
        return out

    def _no_credentials(self, params: dict[str, Any]) -> FeedResult[T]:
        if self.source.fallback is not None:
            return FeedResult(
                items=self.source.fallback.items(params),
                status=FeedStatus.FALLBACK,
                cache=CacheStatus.BYPASS,
                message="No API key configured; showing sample data",
            )
        return FeedResult(
            status=FeedStatus.NEEDS_CONFIGURATION,
            cache=CacheStatus.BYPASS,
            message=f"{self.name} requires an API key",
        )

    def _degrade(self, params: dict[str, Any], key: CacheKey, message: str) -> FeedResult[T]:
        if self.source.serve_stale_on_error:
            stale = self._read_cache(key)
            if stale is not None:
                return FeedResult(
                    items=self._hydrate(stale.payload),
                    status=FeedStatus.STALE,
                    cache=CacheStatus.HIT,
                    fetched_at_millis=stale.fetched_at_millis,
                    message=message,
                )
        if self.source.fallback is not None:
            return FeedResult(
                items=self.source.fallback.items(params),
                status=FeedStatus.FALLBACK,
                cache=CacheStatus.MISS,
                message=message,
            )
        return FeedResult(status=FeedStatus.EMPTY, cache=CacheStatus.MISS, message=message)
