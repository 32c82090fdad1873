"""Build every source adapter from Settings over one HTTP client and one cache store."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from trendboard.config import Settings
from trendboard.feeds.adapter import FeedAdapter
from trendboard.feeds.cache import CacheStore, MemoryCache
from trendboard.feeds.http import HttpClient
from trendboard.sources import apisports, espn, news, nhl, odds, polymarket, reddit, sportsdb, techmeme

log = structlog.get_logger(__name__)


def build_cache(settings: Settings) -> CacheStore:
    if settings.cache_backend == "duckdb":
        from trendboard.storage.cache import DuckDBCache

        return DuckDBCache(settings.cache_db_path)
    return MemoryCache(max_entries=settings.cache_max_entries)


class Feeds:
    """All adapters, keyed by source name. Proxy mode routes keyed sources through the proxy."""

    def __init__(
        self,
        settings: Settings,
        cache: CacheStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache if cache is not None else build_cache(settings)
        self.http = HttpClient(
            timeout=settings.http_timeout_sec,
            user_agent=settings.user_agent,
            transport=transport,
        )
        proxy = settings.proxy_base_url
        ttl = settings.ttl_ms

        self.markets = polymarket.build_events_adapter(
            self.http,
            self.cache,
            url=f"{proxy}/api/polymarket/events" if proxy else polymarket.GAMMA_EVENTS_URL,
            ttl_ms=ttl("polymarket_events"),
        )
        self.price_history = polymarket.build_history_adapter(
            self.http,
            self.cache,
            url=f"{proxy}/api/clob/prices-history" if proxy else polymarket.CLOB_PRICES_HISTORY_URL,
            ttl_ms=ttl("polymarket_history"),
        )
        self.odds = odds.build_odds_adapter(
            self.http,
            self.cache,
            api_key=settings.api_key("odds_api"),
            url=f"{proxy}/api/odds" if proxy else odds.ODDS_API_URL,
            via_proxy=bool(proxy),
            ttl_ms=ttl("odds"),
        )
        if proxy or settings.api_key("gnews"):
            self.news = news.build_gnews_adapter(
                self.http,
                self.cache,
                api_key=settings.api_key("gnews"),
                url=f"{proxy}/api/news" if proxy else news.GNEWS_SEARCH_URL,
                via_proxy=bool(proxy),
                ttl_ms=ttl("gnews"),
            )
        else:
            self.news = news.build_google_news_adapter(self.http, self.cache, ttl_ms=ttl("google_news"))
        self.reddit = reddit.build_posts_adapter(
            self.http,
            self.cache,
            proxy_url=f"{proxy}/api/reddit" if proxy else None,
            use_rss=settings.use_reddit_rss,
            ttl_ms=ttl("reddit"),
        )
        self.techmeme = techmeme.build_stories_adapter(
            self.http,
            self.cache,
            proxy_url=f"{proxy}/api/techmeme" if proxy else None,
            ttl_ms=ttl("techmeme"),
        )
        self.espn_scoreboard = espn.build_scoreboard_adapter(self.http, self.cache, ttl_ms=ttl("espn_scoreboard"))
        self.espn_standings = espn.build_standings_adapter(self.http, self.cache, ttl_ms=ttl("espn_standings"))
        self.nhl_schedule = nhl.build_schedule_adapter(self.http, self.cache, ttl_ms=ttl("nhl_schedule"))
        self.nhl_standings = nhl.build_standings_adapter(self.http, self.cache, ttl_ms=ttl("nhl_standings"))
        self.sportsdb = sportsdb.build_events_adapter(self.http, self.cache, ttl_ms=ttl("sportsdb_events"))
        self.apisports = apisports.build_games_adapter(
            self.http,
            self.cache,
            api_key=lambda: settings.api_key("api_sports"),
            ttl_ms=ttl("apisports_games"),
        )

    def all(self) -> dict[str, FeedAdapter[Any]]:
        adapters = [
            self.markets,
            self.price_history,
            self.odds,
            self.news,
            self.reddit,
            self.techmeme,
            self.espn_scoreboard,
            self.espn_standings,
            self.nhl_schedule,
            self.nhl_standings,
            self.sportsdb,
            self.apisports,
        ]
        return {a.name: a for a in adapters}

    def get(self, name: str) -> FeedAdapter[Any]:
        try:
            return self.all()[name]
        except KeyError:
            raise KeyError(f"unknown source: {name}") from None

    def clear(self, source: str | None = None) -> int:
        if source is None:
            return self.cache.clear()
        return self.get(source).clear()

    async def aclose(self) -> None:
        await self.http.aclose()
        close = getattr(self.cache, "close", None)
        if close is not None:
            close()
