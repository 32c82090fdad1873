"""FeedItem, NewsItem, RedditPost - article-shaped canonical entities."""

from __future__ import annotations

from pydantic import BaseModel


class FeedItem(BaseModel):
    """Article-like item. id is unique within one fetch result only."""

    id: str
    title: str
    url: str
    published_at: str = ""  # ISO-8601 where the source allows it
    source_label: str = ""
    image_url: str | None = None
    summary: str | None = None  # HTML stripped, bounded length


class NewsItem(FeedItem):
    """News article (GNews / Google News RSS)."""


class RedditPost(FeedItem):
    """Reddit post; pinned and adult posts never reach this shape."""

    author: str = ""
    score: int = 0
    comments: int = 0
    subreddit: str = ""
