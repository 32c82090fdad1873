"""News: GNews JSON (keyed) and Google News RSS (keyless) -> NewsItem."""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import BaseModel

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import NewsItem
from trendboard.sources.rss import parse_rss_items
from trendboard.sources.text import as_list, first_image, rfc822_to_iso, summarize, to_str

log = structlog.get_logger(__name__)

GNEWS_SEARCH_URL = "https://gnews.io/api/v4/search"
GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"
NEWS_TTL_MS = 24 * 60 * 60 * 1000
NEWS_LIMIT = 12


class NewsCategory(BaseModel):
    id: str
    label: str
    query: str


def get_news_categories() -> list[NewsCategory]:
    return [
        NewsCategory(id="top", label="Top Stories", query="breaking news"),
        NewsCategory(id="world", label="World", query="world news"),
        NewsCategory(id="business", label="Business", query="business news"),
        NewsCategory(id="tech", label="Technology", query="technology news"),
        NewsCategory(id="crypto", label="Crypto", query="cryptocurrency bitcoin ethereum"),
        NewsCategory(id="ai", label="AI", query="artificial intelligence openai"),
        NewsCategory(id="sports", label="Sports", query="sports news"),
        NewsCategory(id="retail", label="Retail", query="retail industry ecommerce"),
        NewsCategory(id="entertainment", label="Entertainment", query="entertainment news"),
    ]


def news_params(
    query: str | None = None,
    category: str | None = None,
    lang: str = "en",
    country: str = "us",
    max_items: int = NEWS_LIMIT,
) -> dict[str, Any]:
    """Free-text query wins over category; neither means the 'general' category."""
    params: dict[str, Any] = {"lang": lang, "country": country, "max": max_items}
    if query:
        params["q"] = query
    else:
        params["category"] = category or "general"
    return params


def normalize_gnews(raw: Any, params: dict[str, Any] | None = None) -> list[NewsItem]:
    """GNews {articles: [...]} -> NewsItems. Articles without a url are dropped."""
    if not isinstance(raw, dict):
        return []
    out: list[NewsItem] = []
    for i, a in enumerate(as_list(raw.get("articles"))):
        if not isinstance(a, dict):
            continue
        url = to_str(a.get("url"))
        if not url:
            continue
        source = a.get("source") or {}
        out.append(
            NewsItem(
                id=url + str(i),
                title=to_str(a.get("title")) or "No Title",
                url=url,
                published_at=to_str(a.get("publishedAt")),
                source_label=to_str(source.get("name") if isinstance(source, dict) else source),
                image_url=a.get("image") or None,
                summary=summarize(a.get("description")) or None,
            )
        )
    return out


def split_source(title: str, fallback: str) -> tuple[str, str]:
    """Google News titles read 'Headline - Publisher'."""
    parts = title.split(" - ")
    if len(parts) > 1:
        return " - ".join(parts[:-1]), parts[-1]
    return title, fallback


def normalize_google_rss(raw: Any, params: dict[str, Any] | None = None) -> list[NewsItem]:
    """Google News RSS text -> NewsItems. id is link + index (stable within one fetch only)."""
    if not isinstance(raw, str):
        return []
    out: list[NewsItem] = []
    for i, item in enumerate(parse_rss_items(raw)):
        link = item["link"] or "#"
        title, source = split_source(item["title"] or "No Title", item["source"] or "Google News")
        description = item["description"]
        out.append(
            NewsItem(
                id=link + str(i),
                title=title,
                url=link,
                published_at=rfc822_to_iso(item["pubDate"]),
                source_label=source,
                image_url=first_image(description),
                summary=summarize(description) or None,
            )
        )
    return out[:NEWS_LIMIT]


def build_gnews_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    api_key: str | None = None,
    url: str = GNEWS_SEARCH_URL,
    via_proxy: bool = False,
    ttl_ms: int = NEWS_TTL_MS,
) -> FeedAdapter[NewsItem]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        query = dict(params)
        if not via_proxy:
            query["apikey"] = api_key
        return await http.get_json(url, params=query, keyed=True)

    return FeedAdapter(
        FeedSource(
            name="gnews",
            fetch_raw=fetch_raw,
            normalize=normalize_gnews,
            ttl_ms=ttl_ms,
            item_model=NewsItem,
            has_credentials=None if via_proxy else (lambda: bool(api_key)),
            limit=NEWS_LIMIT,
        ),
        cache,
    )


def build_google_news_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    url: str = GOOGLE_NEWS_RSS_URL,
    ttl_ms: int = NEWS_TTL_MS,
) -> FeedAdapter[NewsItem]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        lang = str(params.get("lang", "en"))
        country = str(params.get("country", "us")).upper()
        query = {
            "hl": f"{lang}-{country}",
            "gl": country,
            "ceid": f"{country}:{lang}",
            "q": params.get("q") or params.get("category") or "breaking news",
        }
        return await http.get_text(url, params=query)

    return FeedAdapter(
        FeedSource(
            name="google_news",
            fetch_raw=fetch_raw,
            normalize=normalize_google_rss,
            ttl_ms=ttl_ms,
            item_model=NewsItem,
        ),
        cache,
    )
