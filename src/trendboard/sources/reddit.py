"""Reddit JSON listing, Atom RSS, or proxy {posts} -> RedditPost.

Pinned (stickied) and adult (over_18) posts are removed here, before anything
downstream sees them. Order of the remaining posts is preserved.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import RedditPost
from trendboard.sources.rss import parse_atom_entries
from trendboard.sources.text import absolute_url, as_list, first_image, summarize, to_float, to_int, to_str

log = structlog.get_logger(__name__)

REDDIT_BASE = "https://www.reddit.com"
REDDIT_LIMIT = 12


class RedditCategory(BaseModel):
    id: str
    label: str
    subreddit: str


def get_reddit_categories() -> list[RedditCategory]:
    return [
        RedditCategory(id="popular", label="Popular", subreddit="popular"),
        RedditCategory(id="all", label="All", subreddit="all"),
        RedditCategory(id="news", label="News", subreddit="news"),
        RedditCategory(id="worldnews", label="World News", subreddit="worldnews"),
        RedditCategory(id="technology", label="Technology", subreddit="technology"),
        RedditCategory(id="science", label="Science", subreddit="science"),
        RedditCategory(id="gaming", label="Gaming", subreddit="gaming"),
        RedditCategory(id="sports", label="Sports", subreddit="sports"),
    ]


def reddit_params(subreddit: str = "popular", sort: str = "hot", limit: int = REDDIT_LIMIT) -> dict[str, Any]:
    return {"subreddit": subreddit, "sort": sort, "limit": limit}


def is_safe(data: dict[str, Any]) -> bool:
    return not data.get("stickied") and not data.get("over_18")


def _image(data: dict[str, Any]) -> str | None:
    thumb = to_str(data.get("thumbnail"))
    if thumb.startswith("http"):
        return thumb
    preview = data.get("preview")
    images = as_list(preview.get("images")) if isinstance(preview, dict) else []
    source = images[0].get("source") if images and isinstance(images[0], dict) else None
    if isinstance(source, dict):
        src = to_str(source.get("url"))
        if src:
            return src.replace("&amp;", "&")
    return None


def _iso_from_epoch(value: Any) -> str:
    ts = to_float(value, default=-1.0)
    if ts < 0:
        return ""
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def parse_listing_post(data: dict[str, Any]) -> RedditPost:
    return RedditPost(
        id=to_str(data.get("id")),
        title=to_str(data.get("title")),
        url=absolute_url(data.get("permalink"), REDDIT_BASE),
        image_url=_image(data),
        summary=summarize(data.get("selftext")) or None,
        published_at=_iso_from_epoch(data.get("created_utc")),
        source_label=f"r/{to_str(data.get('subreddit'))}",
        author=to_str(data.get("author")),
        score=to_int(data.get("score")),
        comments=to_int(data.get("num_comments")),
        subreddit=to_str(data.get("subreddit")),
    )


def normalize_listing(raw: dict[str, Any]) -> list[RedditPost]:
    data = raw.get("data")
    children = data.get("children") if isinstance(data, dict) else None
    if not isinstance(children, list):
        return []
    out: list[RedditPost] = []
    for child in children:
        data = child.get("data") if isinstance(child, dict) else None
        if not isinstance(data, dict) or not is_safe(data):
            continue
        try:
            out.append(parse_listing_post(data))
        except Exception as e:
            log.warning("skip_reddit_post", post_id=data.get("id"), error=str(e))
    return out


def normalize_atom(xml_text: str) -> list[RedditPost]:
    """Atom entries carry no stickied/over_18 flags; nothing to filter on."""
    out: list[RedditPost] = []
    for entry in parse_atom_entries(xml_text):
        subreddit = entry["category"]
        post_id = entry["id"]
        if post_id.startswith("t3_"):
            post_id = post_id[3:]
        out.append(
            RedditPost(
                id=post_id or entry["link"],
                title=entry["title"],
                url=absolute_url(entry["link"], REDDIT_BASE),
                image_url=entry["thumbnail"] or first_image(entry["content"]),
                summary=summarize(entry["content"]) or None,
                published_at=entry["updated"],
                source_label=f"r/{subreddit}" if subreddit else "reddit",
                author=entry["author"].removeprefix("/u/"),
                subreddit=subreddit,
            )
        )
    return out


def normalize_proxy(raw: dict[str, Any]) -> list[RedditPost]:
    out: list[RedditPost] = []
    for row in as_list(raw.get("posts")):
        try:
            out.append(RedditPost.model_validate(row))
        except ValidationError as e:
            log.warning("skip_reddit_post", error=str(e))
    return out


def normalize_posts(raw: Any, params: dict[str, Any] | None = None) -> list[RedditPost]:
    if isinstance(raw, str):
        posts = normalize_atom(raw)
    elif isinstance(raw, dict) and "posts" in raw:
        posts = normalize_proxy(raw)
    elif isinstance(raw, dict):
        posts = normalize_listing(raw)
    else:
        return []
    return posts[:REDDIT_LIMIT]


def listing_url(subreddit: str, sort: str, base: str = REDDIT_BASE) -> str:
    return f"{base}/r/{subreddit}/{sort}.json"


def rss_url(subreddit: str, sort: str, base: str = REDDIT_BASE) -> str:
    return f"{base}/r/{subreddit}/{sort}/.rss"


def build_posts_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    proxy_url: str | None = None,
    use_rss: bool = False,
    ttl_ms: int = 0,
) -> FeedAdapter[RedditPost]:
    """Direct JSON by default; use_rss reads the Atom feed; proxy_url goes through /api/reddit."""

    async def fetch_raw(params: dict[str, Any]) -> Any:
        subreddit = str(params.get("subreddit", "popular"))
        sort = str(params.get("sort", "hot"))
        limit = params.get("limit", REDDIT_LIMIT)
        if proxy_url:
            return await http.get_json(proxy_url, params={"subreddit": subreddit, "sort": sort, "limit": limit})
        if use_rss:
            return await http.get_text(rss_url(subreddit, sort), params={"limit": limit})
        return await http.get_json(listing_url(subreddit, sort), params={"limit": limit})

    return FeedAdapter(
        FeedSource(
            name="reddit",
            fetch_raw=fetch_raw,
            normalize=normalize_posts,
            ttl_ms=ttl_ms,
            item_model=RedditPost,
        ),
        cache,
    )
