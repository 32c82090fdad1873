"""Techmeme RSS (or proxy {stories}) -> FeedItem."""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import FeedItem
from trendboard.sources.rss import parse_rss_items
from trendboard.sources.text import as_list, first_image, rfc822_to_iso, summarize

log = structlog.get_logger(__name__)

TECHMEME_FEED_URL = "https://www.techmeme.com/feed.xml"
TECHMEME_LIMIT = 12


def normalize_rss(xml_text: str) -> list[FeedItem]:
    out: list[FeedItem] = []
    for item in parse_rss_items(xml_text)[:TECHMEME_LIMIT]:
        link = item["link"] or "#"
        description = item["description"]
        out.append(
            FeedItem(
                id=link,
                title=item["title"] or "No Title",
                url=link,
                published_at=rfc822_to_iso(item["pubDate"]),
                source_label="Techmeme",
                image_url=first_image(description),
                summary=summarize(description) or None,
            )
        )
    return out


def normalize_stories(raw: Any, params: dict[str, Any] | None = None) -> list[FeedItem]:
    if isinstance(raw, str):
        return normalize_rss(raw)
    if not isinstance(raw, dict):
        return []
    out: list[FeedItem] = []
    for row in as_list(raw.get("stories"))[:TECHMEME_LIMIT]:
        try:
            out.append(FeedItem.model_validate(row))
        except ValidationError as e:
            log.warning("skip_techmeme_story", error=str(e))
    return out


def build_stories_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    proxy_url: str | None = None,
    ttl_ms: int = 0,
) -> FeedAdapter[FeedItem]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        if proxy_url:
            return await http.get_json(proxy_url)
        return await http.get_text(TECHMEME_FEED_URL)

    return FeedAdapter(
        FeedSource(
            name="techmeme",
            fetch_raw=fetch_raw,
            normalize=normalize_stories,
            ttl_ms=ttl_ms,
            item_model=FeedItem,
        ),
        cache,
    )
