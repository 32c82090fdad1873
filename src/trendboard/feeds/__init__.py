"""Feed adapter contract: cache -> fetch -> normalize, with fallback on failure."""

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheKey, CacheStore, MemoryCache
from trendboard.feeds.result import CacheStatus, FeedResult, FeedStatus

__all__ = [
    "FeedAdapter",
    "FeedSource",
    "CacheKey",
    "CacheStore",
    "MemoryCache",
    "CacheStatus",
    "FeedResult",
    "FeedStatus",
]
