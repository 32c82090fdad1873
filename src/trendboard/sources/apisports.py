"""API-SPORTS american football games. Requires a user-supplied key; no sample data."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import structlog

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import GameState, ScoreboardGame, TeamLine
from trendboard.sources.text import as_list, to_int, to_str

log = structlog.get_logger(__name__)

API_SPORTS_HOST = "v1.american-football.api-sports.io"
API_SPORTS_URL = f"https://{API_SPORTS_HOST}/games"
API_SPORTS_TTL_MS = 6 * 60 * 60 * 1000
NFL_LEAGUE_ID = "1"

_FINAL = {"FT", "AOT"}
_SCHEDULED = {"NS", "TBD", "PST", "CANC"}


def _state(short: str) -> GameState:
    if short in _FINAL:
        return GameState.FINAL
    if short in _SCHEDULED or not short:
        return GameState.SCHEDULED
    return GameState.LIVE


def parse_game(raw: dict[str, Any]) -> ScoreboardGame:
    game = raw.get("game") or {}
    status = game.get("status") or {}
    short = to_str(status.get("short")).upper()
    state = _state(short)
    teams = raw.get("teams") or {}
    scores = raw.get("scores") or {}
    date = game.get("date") or {}
    ts = date.get("timestamp")
    start = (
        datetime.fromtimestamp(to_int(ts), tz=timezone.utc).isoformat()
        if ts is not None
        else to_str(date.get("date"))
    )

    def team(side: str) -> TeamLine:
        t = teams.get(side) or {}
        return TeamLine(
            name=to_str(t.get("name")),
            logo_url=to_str(t.get("logo")),
            score=to_int((scores.get(side) or {}).get("total")),
        )

    clock = None
    if state is GameState.LIVE:
        clock = " ".join(p for p in (to_str(status.get("short")), to_str(status.get("timer"))) if p) or None
    return ScoreboardGame(
        id=to_str(game.get("id")),
        start_time=start,
        state=state,
        home_team=team("home"),
        away_team=team("away"),
        clock_display=clock,
        league=to_str((raw.get("league") or {}).get("name")) or "NFL",
        venue=to_str((game.get("venue") or {}).get("name")) or None,
    )


def normalize_games(raw: Any, params: dict[str, Any] | None = None) -> list[ScoreboardGame]:
    if not isinstance(raw, dict):
        return []
    out: list[ScoreboardGame] = []
    for row in as_list(raw.get("response")):
        if not isinstance(row, dict):
            continue
        try:
            out.append(parse_game(row))
        except Exception as e:
            log.warning("skip_apisports_game", error=str(e))
    return out


def build_games_adapter(
    http: HttpClient,
    cache: CacheStore | None = None,
    *,
    api_key: Callable[[], str | None],
    url: str = API_SPORTS_URL,
    ttl_ms: int = API_SPORTS_TTL_MS,
) -> FeedAdapter[ScoreboardGame]:
    """api_key is read on every call so a rotated key takes effect after clear()."""

    async def fetch_raw(params: dict[str, Any]) -> Any:
        season = params.get("season") or str(datetime.now(timezone.utc).year)
        return await http.get_json(
            url,
            params={"league": NFL_LEAGUE_ID, "season": season},
            headers={"x-rapidapi-key": api_key() or "", "x-rapidapi-host": API_SPORTS_HOST},
            keyed=True,
        )

    return FeedAdapter(
        FeedSource(
            name="apisports_games",
            fetch_raw=fetch_raw,
            normalize=normalize_games,
            ttl_ms=ttl_ms,
            item_model=ScoreboardGame,
            has_credentials=lambda: bool(api_key()),
        ),
        cache,
    )
