"""The Odds API upcoming games -> OddsGame, plus the sample dataset for no-key mode."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import structlog

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.fallback import GeneratedFallback
from trendboard.feeds.http import HttpClient
from trendboard.models import MarketType, OddsGame, OddsMarket, OddsOutcome
from trendboard.sources.text import to_float, to_str

log = structlog.get_logger(__name__)

ODDS_API_URL = "https://api.the-odds-api.com/v4/sports/upcoming/odds"
ODDS_TTL_MS = 6 * 60 * 60 * 1000
GAMES_LIMIT = 10

BOOKMAKERS: dict[str, str] = {
    "fanduel": "FanDuel",
    "draftkings": "DraftKings",
    "betmgm": "BetMGM",
}

# Wire key -> canonical market type
MARKET_KEYS: dict[str, MarketType] = {
    "h2h": MarketType.MONEYLINE,
    "spreads": MarketType.SPREAD,
    "totals": MarketType.TOTAL,
}
MARKET_LABELS: dict[str, str] = {
    "h2h": "Moneyline (Winner)",
    "spreads": "Point Spread",
    "totals": "Over/Under",
}


def odds_params(bookmaker: str, market: str = "h2h") -> dict[str, Any]:
    return {"bookmaker": bookmaker, "market": market}


def _parse_market(raw: dict[str, Any]) -> OddsMarket | None:
    market_type = MARKET_KEYS.get(to_str(raw.get("key")))
    if market_type is None:
        return None
    outcomes = []
    for o in raw.get("outcomes") or []:
        if not isinstance(o, dict):
            continue
        price = to_float(o.get("price"))
        if price <= 1.0:
            continue
        point = o.get("point")
        outcomes.append(
            OddsOutcome(
                label=to_str(o.get("name")),
                decimal_price=price,
                handicap=to_float(point) if point is not None else None,
            )
        )
    return OddsMarket(market_type=market_type, outcomes=outcomes)


def parse_game(raw: dict[str, Any]) -> OddsGame:
    markets: dict[str, OddsMarket] = {}
    for book in raw.get("bookmakers") or []:
        if not isinstance(book, dict) or not book.get("key"):
            continue
        for m in book.get("markets") or []:
            if not isinstance(m, dict):
                continue
            parsed = _parse_market(m)
            if parsed is not None:
                markets[str(book["key"])] = parsed
                break
    return OddsGame(
        id=to_str(raw.get("id")),
        start_time=to_str(raw.get("commence_time")),
        home_team=to_str(raw.get("home_team")),
        away_team=to_str(raw.get("away_team")),
        sport_label=to_str(raw.get("sport_title")) or to_str(raw.get("sport_key")),
        markets=markets,
    )


def normalize_odds(raw: Any, params: dict[str, Any] | None = None) -> list[OddsGame]:
    """Odds API game list -> OddsGames, first GAMES_LIMIT only."""
    if not isinstance(raw, list):
        return []
    games: list[OddsGame] = []
    for row in raw:
        if not isinstance(row, dict):
            continue
        try:
            games.append(parse_game(row))
        except Exception as e:
            log.warning("skip_odds_game", game_id=row.get("id"), error=str(e))
    return games[:GAMES_LIMIT]


_SAMPLE_GAMES: list[tuple[str, str, str, str, int]] = [
    ("1", "basketball_nba", "NBA", "Lakers|Warriors", 2),
    ("2", "americanfootball_nfl", "NFL", "Chiefs|Ravens", 24),
    ("3", "baseball_mlb", "MLB", "Yankees|Red Sox", 5),
    ("4", "basketball_nba", "NBA", "Celtics|Heat", 8),
    ("5", "icehockey_nhl", "NHL", "Maple Leafs|Canadiens", 12),
    ("6", "americanfootball_nfl", "NFL", "49ers|Seahawks", 36),
    ("7", "baseball_mlb", "MLB", "Dodgers|Giants", 6),
    ("8", "basketball_nba", "NBA", "Nuggets|Suns", 15),
    ("9", "icehockey_nhl", "NHL", "Rangers|Islanders", 20),
    ("10", "baseball_mlb", "MLB", "Astros|Rangers", 9),
]

_BOOK_BIAS = {"fanduel": 0.05, "draftkings": 0.03}


def _sample_total(sport_key: str) -> float:
    if "basketball" in sport_key:
        return 220.0
    if "football" in sport_key:
        return 47.0
    if "baseball" in sport_key:
        return 8.5
    return 6.5


def sample_odds(params: dict[str, Any], now: Callable[[], datetime] | None = None) -> list[OddsGame]:
    """Deterministic sample games for the requested bookmaker/market."""
    bookmaker = str(params.get("bookmaker") or "fanduel")
    market_key = str(params.get("market") or "h2h")
    market_type = MARKET_KEYS.get(market_key, MarketType.MONEYLINE)
    bias = _BOOK_BIAS.get(bookmaker, 0.02)
    start = (now or (lambda: datetime.now(timezone.utc)))()
    games = []
    for game_id, sport_key, sport_title, teams, hours in _SAMPLE_GAMES:
        home, away = teams.split("|")
        if market_type is MarketType.MONEYLINE:
            outcomes = [
                OddsOutcome(label=home, decimal_price=round(1.85 + bias, 2)),
                OddsOutcome(label=away, decimal_price=round(1.95 + bias, 2)),
            ]
        elif market_type is MarketType.SPREAD:
            outcomes = [
                OddsOutcome(label=home, decimal_price=round(1.90 + bias, 2), handicap=-3.5),
                OddsOutcome(label=away, decimal_price=round(1.90 + bias, 2), handicap=3.5),
            ]
        else:
            total = _sample_total(sport_key)
            outcomes = [
                OddsOutcome(label="Over", decimal_price=round(1.90 + bias, 2), handicap=total),
                OddsOutcome(label="Under", decimal_price=round(1.90 + bias, 2), handicap=total),
            ]
        games.append(
            OddsGame(
                id=game_id,
                start_time=(start + timedelta(hours=hours)).isoformat(),
                home_team=home,
                away_team=away,
                sport_label=sport_title,
                markets={bookmaker: OddsMarket(market_type=market_type, outcomes=outcomes)},
            )
        )
    return games


def build_odds_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    api_key: str | None = None,
    url: str = ODDS_API_URL,
    via_proxy: bool = False,
    ttl_ms: int = ODDS_TTL_MS,
) -> FeedAdapter[OddsGame]:
    """Direct mode needs api_key (sample data otherwise); proxy mode lets the proxy attach it."""

    async def fetch_raw(params: dict[str, Any]) -> Any:
        query: dict[str, Any] = {
            "regions": "us",
            "markets": params.get("market", "h2h"),
            "bookmakers": params.get("bookmaker"),
            "oddsFormat": "decimal",
        }
        if not via_proxy:
            query["apiKey"] = api_key
        return await http.get_json(url, params=query, keyed=True)

    return FeedAdapter(
        FeedSource(
            name="odds",
            fetch_raw=fetch_raw,
            normalize=normalize_odds,
            ttl_ms=ttl_ms,
            item_model=OddsGame,
            fallback=GeneratedFallback(sample_odds),
            has_credentials=None if via_proxy else (lambda: bool(api_key)),
        ),
        cache,
    )
