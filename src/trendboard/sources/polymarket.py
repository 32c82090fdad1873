"""Polymarket Gamma events and CLOB price history -> MarketEvent / PricePoint."""

from __future__ import annotations

from typing import Any

import structlog

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import MarketEvent, MarketOutcome, MarketTag, PricePoint
from trendboard.sources.text import parse_json_list, to_float, to_int, to_str

log = structlog.get_logger(__name__)

GAMMA_EVENTS_URL = "https://gamma-api.polymarket.com/events"
CLOB_PRICES_HISTORY_URL = "https://clob.polymarket.com/prices-history"

EVENTS_LIMIT = 10
HISTORY_INTERVAL = "1h"
HISTORY_FIDELITY = 10


def _clamp(p: float) -> float:
    return min(max(p, 0.0), 1.0)


def _parse_outcomes(
    outcomes_raw: Any,
    prices_raw: Any,
    token_ids_raw: Any,
) -> list[MarketOutcome]:
    """Zip Gamma outcome names, prices and token ids (any may be a JSON string)."""
    prices = [_clamp(to_float(p)) for p in parse_json_list(prices_raw)]
    names = [to_str(n) for n in parse_json_list(outcomes_raw)]
    if not names:
        names = ["Yes", "No"][: len(prices)] if len(prices) <= 2 else [f"Outcome {i + 1}" for i in range(len(prices))]
    token_ids = [to_str(t) for t in parse_json_list(token_ids_raw)]
    # Align lengths
    while len(prices) < len(names):
        prices.append(0.0)
    while len(token_ids) < len(names):
        token_ids.append("")
    return [
        MarketOutcome(label=name, price_probability=price, token_id=tid)
        for name, price, tid in zip(names, prices, token_ids)
    ]


def parse_event(raw: dict[str, Any]) -> MarketEvent | None:
    """Convert one Gamma event into a MarketEvent. None if it has no open market."""
    markets = [m for m in (raw.get("markets") or []) if isinstance(m, dict) and not m.get("closed")]
    if not markets:
        return None
    main = markets[0]
    outcomes = _parse_outcomes(main.get("outcomes"), main.get("outcomePrices"), main.get("clobTokenIds"))
    options: list[MarketOutcome] = []
    if len(markets) > 1:
        for m in markets:
            sub = _parse_outcomes(m.get("outcomes"), m.get("outcomePrices"), m.get("clobTokenIds"))
            if not sub:
                continue
            label = to_str(m.get("groupItemTitle")) or to_str(m.get("question")) or sub[0].label
            options.append(
                MarketOutcome(label=label, price_probability=sub[0].price_probability, token_id=sub[0].token_id)
            )
    return MarketEvent(
        id=to_str(raw.get("id")),
        title=to_str(raw.get("title")) or to_str(main.get("question")),
        slug=to_str(raw.get("slug")),
        image_url=raw.get("image") or main.get("image") or None,
        volume_total=to_float(raw.get("volume")),
        volume_24h=to_float(raw.get("volume24hr")),
        outcomes=outcomes,
        options=options,
    )


def normalize_events(raw: Any, params: dict[str, Any] | None = None) -> list[MarketEvent]:
    """Gamma /events payload -> MarketEvents. Bad events are skipped, not fatal."""
    if isinstance(raw, dict):
        raw = raw.get("data", [])
    if not isinstance(raw, list):
        return []
    events: list[MarketEvent] = []
    for row in raw:
        if not isinstance(row, dict):
            continue
        try:
            event = parse_event(row)
        except Exception as e:
            log.warning("skip_event", event_id=row.get("id"), error=str(e))
            continue
        if event is not None:
            events.append(event)
    return events


def normalize_price_history(raw: Any, params: dict[str, Any] | None = None) -> list[PricePoint]:
    """CLOB {history: [{t, p}]} -> PricePoints ascending by timestamp."""
    history = raw.get("history") if isinstance(raw, dict) else raw
    if not isinstance(history, list):
        return []
    points: list[PricePoint] = []
    for row in history:
        if not isinstance(row, dict) or "t" not in row or "p" not in row:
            continue
        points.append(PricePoint(timestamp=to_int(row.get("t")), probability=_clamp(to_float(row.get("p")))))
    points.sort(key=lambda pt: pt.timestamp)
    return points


def is_trending_up(points: list[PricePoint], fallback_percent: int) -> bool:
    """Last price >= first price; without history, 'up' means the favourite is >= 50%."""
    if len(points) > 1:
        return points[-1].probability >= points[0].probability
    return fallback_percent >= 50


def events_params(tag_slug: str = "trending", limit: int = EVENTS_LIMIT) -> dict[str, Any]:
    """Query for a category. Special slugs change ordering instead of filtering."""
    params: dict[str, Any] = {
        "limit": limit,
        "active": True,
        "closed": False,
        "order": "volume24hr",
        "ascending": False,
    }
    if tag_slug == "new":
        params["order"] = "startDate"
    elif tag_slug not in ("trending", "breaking"):
        params["tag_slug"] = tag_slug
    return params


def history_params(token_id: str) -> dict[str, Any]:
    return {"market": token_id, "interval": HISTORY_INTERVAL, "fidelity": HISTORY_FIDELITY}


_TAG_GROUPS: list[tuple[str, str, list[tuple[str, str, str]]]] = [
    ("featured", "Featured", [("trending", "Trending", "trending"), ("breaking", "Breaking", "breaking"), ("new", "New", "new")]),
    ("politics", "Politics", [
        ("politics", "All Politics", "politics"),
        ("us-politics", "US Politics", "us-politics"),
        ("elections", "Elections", "elections"),
        ("global-politics", "Global Politics", "world-politics"),
    ]),
    ("crypto", "Crypto", [
        ("crypto", "All Crypto", "crypto"),
        ("bitcoin", "Bitcoin", "bitcoin"),
        ("ethereum", "Ethereum", "ethereum"),
        ("solana", "Solana", "solana"),
        ("nfts", "NFTs", "nfts"),
    ]),
    ("sports", "Sports", [
        ("sports", "All Sports", "sports"),
        ("soccer", "Soccer", "soccer"),
        ("football", "Football (NFL)", "nfl"),
        ("basketball", "Basketball (NBA)", "nba"),
        ("tennis", "Tennis", "tennis"),
        ("combat-sports", "Combat Sports", "mma"),
        ("f1", "Formula 1", "formula-1"),
    ]),
    ("business", "Business", [
        ("finance", "Finance", "finance"),
        ("economy", "Economy", "economy"),
        ("tech", "Tech", "technology"),
        ("startups", "Startups", "startups"),
    ]),
    ("culture", "Pop Culture", [
        ("culture", "Pop Culture", "pop-culture"),
        ("movies", "Movies", "movies"),
        ("music", "Music", "music"),
        ("celebrities", "Celebrities", "people"),
    ]),
    ("other", "Other", [("science", "Science", "science"), ("ai", "AI", "ai"), ("space", "Space", "space")]),
]


def get_tags() -> list[MarketTag]:
    """Fixed category catalogue, grouped for the category picker."""
    return [
        MarketTag(
            id=tag_id,
            label=label,
            slug=slug,
            is_special=group_id == "featured",
            group_id=group_id,
            group_label=group_label,
        )
        for group_id, group_label, tags in _TAG_GROUPS
        for tag_id, label, slug in tags
    ]


def build_events_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    url: str = GAMMA_EVENTS_URL,
    ttl_ms: int = 0,
) -> FeedAdapter[MarketEvent]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(url, params=params)

    return FeedAdapter(
        FeedSource(
            name="polymarket_events",
            fetch_raw=fetch_raw,
            normalize=normalize_events,
            ttl_ms=ttl_ms,
            item_model=MarketEvent,
        ),
        cache,
    )


def build_history_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    url: str = CLOB_PRICES_HISTORY_URL,
    ttl_ms: int = 0,
) -> FeedAdapter[PricePoint]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(url, params=params)

    return FeedAdapter(
        FeedSource(
            name="polymarket_history",
            fetch_raw=fetch_raw,
            normalize=normalize_price_history,
            ttl_ms=ttl_ms,
            item_model=PricePoint,
        ),
        cache,
    )
