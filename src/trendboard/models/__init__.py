"""Canonical schema (Pydantic) - FeedItem, MarketEvent, OddsGame, ScoreboardGame, StandingEntry."""

from trendboard.models.cache import CacheEntry
from trendboard.models.feed import FeedItem, NewsItem, RedditPost
from trendboard.models.market import MarketEvent, MarketOutcome, MarketTag, PricePoint
from trendboard.models.sports import (
    GameState,
    MarketType,
    OddsGame,
    OddsMarket,
    OddsOutcome,
    ScoreboardGame,
    StandingEntry,
    TeamLine,
)

__all__ = [
    "CacheEntry",
    "FeedItem",
    "NewsItem",
    "RedditPost",
    "MarketEvent",
    "MarketOutcome",
    "MarketTag",
    "PricePoint",
    "GameState",
    "MarketType",
    "OddsGame",
    "OddsMarket",
    "OddsOutcome",
    "ScoreboardGame",
    "StandingEntry",
    "TeamLine",
]
