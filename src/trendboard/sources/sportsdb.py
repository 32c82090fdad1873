"""TheSportsDB past/next league events -> ScoreboardGame."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.errors import FeedError, UpstreamError
from trendboard.feeds.http import HttpClient
from trendboard.models import GameState, ScoreboardGame, TeamLine
from trendboard.sources.text import to_int, to_str

log = structlog.get_logger(__name__)

SPORTSDB_BASE_URL = "https://www.thesportsdb.com/api/v1/json/3"
EVENTS_PER_SIDE = 8

LEAGUES: dict[str, tuple[str, str]] = {
    "nfl": ("4391", "NFL"),
    "nhl": ("4380", "NHL"),
    "nba": ("4387", "NBA"),
    "mlb": ("4424", "MLB"),
    "premier": ("4328", "Premier League"),
    "laliga": ("4335", "La Liga"),
    "bundesliga": ("4331", "Bundesliga"),
    "seriea": ("4332", "Serie A"),
}

_FINAL = {"match finished", "ft", "aet", "pen", "aot", "finished", "final"}
_SCHEDULED = {"", "ns", "not started", "tbd", "scheduled", "postponed"}


def _state(raw: dict[str, Any]) -> GameState:
    status = to_str(raw.get("strStatus")).strip().lower()
    if status in _FINAL:
        return GameState.FINAL
    if status in _SCHEDULED:
        if status == "" and raw.get("intHomeScore") not in (None, ""):
            return GameState.FINAL
        return GameState.SCHEDULED
    return GameState.LIVE


def parse_event(raw: dict[str, Any], league: str = "") -> ScoreboardGame:
    state = _state(raw)
    date = to_str(raw.get("dateEvent"))
    time_ = to_str(raw.get("strTime"))
    start = f"{date}T{time_}" if date and time_ else date
    return ScoreboardGame(
        id=to_str(raw.get("idEvent")),
        start_time=start,
        state=state,
        home_team=TeamLine(
            name=to_str(raw.get("strHomeTeam")),
            logo_url=to_str(raw.get("strHomeTeamBadge")),
            score=to_int(raw.get("intHomeScore")),
        ),
        away_team=TeamLine(
            name=to_str(raw.get("strAwayTeam")),
            logo_url=to_str(raw.get("strAwayTeamBadge")),
            score=to_int(raw.get("intAwayScore")),
        ),
        clock_display=(to_str(raw.get("strProgress")) or to_str(raw.get("strStatus")) or None)
        if state is GameState.LIVE
        else None,
        league=league,
    )


def normalize_events(raw: Any, params: dict[str, Any] | None = None) -> list[ScoreboardGame]:
    """raw is {"past": [...], "next": [...]}; first EVENTS_PER_SIDE of each, past first."""
    if not isinstance(raw, dict):
        return []
    league_key = str((params or {}).get("league", ""))
    league = LEAGUES.get(league_key, ("", league_key.upper()))[1]
    past, nxt = raw.get("past"), raw.get("next")
    rows = (past[:EVENTS_PER_SIDE] if isinstance(past, list) else []) + (
        nxt[:EVENTS_PER_SIDE] if isinstance(nxt, list) else []
    )
    out: list[ScoreboardGame] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        try:
            out.append(parse_event(row, league))
        except Exception as e:
            log.warning("skip_sportsdb_event", event_id=row.get("idEvent"), error=str(e))
    return out


def build_events_adapter(
    http: HttpClient, cache: CacheStore | None = None, *, base: str = SPORTSDB_BASE_URL, ttl_ms: int = 0
) -> FeedAdapter[ScoreboardGame]:
    """Past and next requests run concurrently; one failing side does not drop the other."""

    async def fetch_side(endpoint: str, league_id: str) -> list[Any] | None:
        try:
            data = await http.get_json(f"{base}/{endpoint}", params={"id": league_id})
        except FeedError as e:
            log.warning("sportsdb_side_failed", endpoint=endpoint, error=str(e))
            return None
        if not isinstance(data, dict):
            return []
        return data.get("events") or []

    async def fetch_raw(params: dict[str, Any]) -> Any:
        league_id = LEAGUES.get(str(params.get("league", "nfl")), LEAGUES["nfl"])[0]
        past, nxt = await asyncio.gather(
            fetch_side("eventspastleague.php", league_id),
            fetch_side("eventsnextleague.php", league_id),
        )
        if past is None and nxt is None:
            raise UpstreamError("thesportsdb: both event requests failed")
        return {"past": past or [], "next": nxt or []}

    return FeedAdapter(
        FeedSource(
            name="sportsdb_events",
            fetch_raw=fetch_raw,
            normalize=normalize_events,
            ttl_ms=ttl_ms,
            item_model=ScoreboardGame,
        ),
        cache,
    )
