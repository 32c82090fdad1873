"""Same-origin proxy: forwards query params, attaches API keys server-side, adds CORS.

Upstream failures keep the upstream status with an {"error": message} body;
network failures and timeouts answer 502. The proxy cache is a MemoryCache
built per app; it has no durability across process restarts or serverless
invocations.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx
import structlog
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from trendboard.config import Settings, get_settings
from trendboard.feeds.adapter import now_ms
from trendboard.feeds.cache import CacheKey, MemoryCache
from trendboard.feeds.errors import FeedError, NeedsConfiguration, UpstreamError
from trendboard.feeds.http import HttpClient
from trendboard.models import CacheEntry
from trendboard.proxy.schemas import ErrorResponse, HealthResponse, RedditResponse, TechmemeResponse
from trendboard.sources import news, odds, polymarket, reddit, techmeme

log = structlog.get_logger(__name__)

PROXY_TTL_MS = 60 * 1000

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    "default": {"description": "Upstream failure", "model": ErrorResponse},
}


def _error_json(message: str, status_code: int = 500) -> JSONResponse:
    """Consistent error JSON: { error }."""
    return JSONResponse(status_code=status_code, content={"error": message})


def _status_for(e: FeedError) -> int:
    if isinstance(e, (UpstreamError, NeedsConfiguration)) and e.status:
        return e.status
    return 502


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    cache: MemoryCache | None = None,
    clock: Callable[[], int] = now_ms,
) -> FastAPI:
    settings = settings or get_settings()
    http = HttpClient(timeout=settings.http_timeout_sec, user_agent=settings.user_agent, transport=transport)
    proxy_cache = cache if cache is not None else MemoryCache(max_entries=settings.cache_max_entries)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await http.aclose()

    app = FastAPI(title="trendboard proxy", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.proxy_allow_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.cache = proxy_cache

    async def guarded(name: str, produce: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await produce()
        except FeedError as e:
            log.warning("proxy_upstream_failed", endpoint=name, error=str(e))
            return _error_json(str(e), _status_for(e))

    async def cached(key: CacheKey, produce: Callable[[], Awaitable[list[Any]]]) -> list[Any]:
        entry = proxy_cache.get(key)
        now = clock()
        if entry is not None and now - entry.fetched_at_millis < PROXY_TTL_MS:
            return entry.payload
        items = await produce()
        proxy_cache.set(key, CacheEntry(payload=items, fetched_at_millis=now))
        return items

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/api/news", responses=_ERROR_RESPONSES)
    async def news_search(
        q: str | None = Query(None),
        category: str | None = Query(None),
        lang: str = Query("en"),
        country: str = Query("us"),
        max: int = Query(news.NEWS_LIMIT, ge=1, le=100),
    ):
        """GNews search or category; API key attached here."""
        key = settings.api_key("gnews")
        if not key:
            return _error_json("GNews API key not configured", 503)
        params = news.news_params(query=q, category=category, lang=lang, country=country, max_items=max)
        params["apikey"] = key

        async def produce() -> Any:
            return JSONResponse(await http.get_json(news.GNEWS_SEARCH_URL, params=params, keyed=True))

        return await guarded("news", produce)

    @app.get("/api/news/rss/search", responses=_ERROR_RESPONSES)
    async def news_rss(
        q: str = Query("breaking news"),
        hl: str = Query("en-US"),
        gl: str = Query("US"),
        ceid: str = Query("US:en"),
    ):
        """Google News RSS passthrough (XML)."""

        async def produce() -> Any:
            text = await http.get_text(news.GOOGLE_NEWS_RSS_URL, params={"q": q, "hl": hl, "gl": gl, "ceid": ceid})
            return Response(content=text, media_type="application/rss+xml")

        return await guarded("news_rss", produce)

    @app.get("/api/reddit", response_model=RedditResponse, responses=_ERROR_RESPONSES)
    async def reddit_posts(
        subreddit: str = Query("all"),
        sort: str = Query("hot"),
        limit: int = Query(reddit.REDDIT_LIMIT, ge=1, le=100),
    ):
        """Reddit listing, filtered and normalized server-side."""

        async def produce() -> Any:
            async def fetch() -> list[Any]:
                raw = await http.get_json(reddit.listing_url(subreddit, sort), params={"limit": limit})
                return [p.model_dump(mode="json") for p in reddit.normalize_posts(raw)]

            key = CacheKey.build("proxy_reddit", {"subreddit": subreddit, "sort": sort, "limit": limit})
            posts = await cached(key, fetch)
            return RedditResponse(posts=posts)

        return await guarded("reddit", produce)

    @app.get("/api/techmeme", response_model=TechmemeResponse, responses=_ERROR_RESPONSES)
    async def techmeme_stories():
        async def produce() -> Any:
            async def fetch() -> list[Any]:
                text = await http.get_text(techmeme.TECHMEME_FEED_URL)
                return [s.model_dump(mode="json") for s in techmeme.normalize_stories(text)]

            stories = await cached(CacheKey.build("proxy_techmeme"), fetch)
            return TechmemeResponse(stories=stories)

        return await guarded("techmeme", produce)

    @app.get("/api/polymarket/events", responses=_ERROR_RESPONSES)
    async def polymarket_events(
        limit: int = Query(polymarket.EVENTS_LIMIT, ge=1, le=100),
        active: bool = Query(True),
        closed: bool = Query(False),
        order: str = Query("volume24hr"),
        ascending: bool = Query(False),
        tag_slug: str | None = Query(None),
    ):
        params = {
            "limit": limit,
            "active": active,
            "closed": closed,
            "order": order,
            "ascending": ascending,
            "tag_slug": tag_slug,
        }

        async def produce() -> Any:
            return JSONResponse(await http.get_json(polymarket.GAMMA_EVENTS_URL, params=params))

        return await guarded("polymarket_events", produce)

    @app.get("/api/clob/prices-history", responses=_ERROR_RESPONSES)
    async def clob_prices_history(
        market: str = Query(..., description="Outcome token id"),
        interval: str = Query(polymarket.HISTORY_INTERVAL),
        fidelity: int = Query(polymarket.HISTORY_FIDELITY, ge=1),
    ):
        async def produce() -> Any:
            return JSONResponse(
                await http.get_json(
                    polymarket.CLOB_PRICES_HISTORY_URL,
                    params={"market": market, "interval": interval, "fidelity": fidelity},
                )
            )

        return await guarded("clob_prices_history", produce)

    @app.get("/api/odds", responses=_ERROR_RESPONSES)
    async def odds_upcoming(
        bookmakers: str = Query(..., description="Comma-separated bookmaker keys"),
        markets: str = Query("h2h"),
        regions: str = Query("us"),
        oddsFormat: str = Query("decimal"),
    ):
        """The Odds API upcoming games; API key attached here."""
        key = settings.api_key("odds_api")
        if not key:
            return _error_json("Odds API key not configured", 503)

        async def produce() -> Any:
            data = await http.get_json(
                odds.ODDS_API_URL,
                params={
                    "apiKey": key,
                    "regions": regions,
                    "markets": markets,
                    "bookmakers": bookmakers,
                    "oddsFormat": oddsFormat,
                },
                keyed=True,
            )
            return JSONResponse(data)

        return await guarded("odds", produce)

    return app


def run_proxy(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    config_dir: Path | None = None,
) -> None:
    import uvicorn

    app = create_app(get_settings(profile, config_dir))
    uvicorn.run(app, host=host, port=port, reload=False)
