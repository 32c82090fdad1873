"""ESPN site API scoreboard and standings -> ScoreboardGame / StandingEntry."""

from __future__ import annotations

from typing import Any

import structlog

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import GameState, ScoreboardGame, StandingEntry, TeamLine
from trendboard.sources.text import as_list, to_float, to_int, to_str

log = structlog.get_logger(__name__)

ESPN_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports"
STANDINGS_LIMIT = 8

SPORT_PATHS: dict[str, str] = {
    "nfl": "football/nfl",
    "nhl": "hockey/nhl",
    "nba": "basketball/nba",
    "mlb": "baseball/mlb",
}

_STATES = {"pre": GameState.SCHEDULED, "in": GameState.LIVE, "post": GameState.FINAL}


def _team_line(competitor: dict[str, Any] | None) -> TeamLine:
    if not competitor:
        return TeamLine()
    team = competitor.get("team") or {}
    records = competitor.get("records") or []
    record = records[0].get("summary") if records and isinstance(records[0], dict) else None
    return TeamLine(
        name=to_str(team.get("displayName")),
        abbreviation=to_str(team.get("abbreviation")),
        logo_url=to_str(team.get("logo")),
        score=to_int(competitor.get("score")),
        record=record or None,
    )


def parse_event(raw: dict[str, Any], league: str = "") -> ScoreboardGame:
    competition = (raw.get("competitions") or [{}])[0] or {}
    competitors = [c for c in competition.get("competitors") or [] if isinstance(c, dict)]
    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    status = raw.get("status") or {}
    status_type = status.get("type") or {}
    state = _STATES.get(to_str(status_type.get("state")), GameState.SCHEDULED)
    if status_type.get("completed"):
        state = GameState.FINAL
    clock = None
    if state is GameState.LIVE:
        clock = to_str(status_type.get("shortDetail")) or to_str(status.get("displayClock")) or None
    venue = (competition.get("venue") or {}).get("fullName")
    return ScoreboardGame(
        id=to_str(raw.get("id")),
        start_time=to_str(raw.get("date")),
        state=state,
        home_team=_team_line(home),
        away_team=_team_line(away),
        clock_display=clock,
        league=league,
        venue=venue,
    )


def normalize_scoreboard(raw: Any, params: dict[str, Any] | None = None) -> list[ScoreboardGame]:
    if not isinstance(raw, dict):
        return []
    league = str((params or {}).get("sport", "")).upper()
    games: list[ScoreboardGame] = []
    for event in as_list(raw.get("events")):
        if not isinstance(event, dict):
            continue
        try:
            games.append(parse_event(event, league))
        except Exception as e:
            log.warning("skip_scoreboard_event", event_id=event.get("id"), error=str(e))
    return games


def _stat(stats: list[Any], name: str) -> float:
    for s in stats:
        if isinstance(s, dict) and s.get("name") == name:
            return to_float(s.get("value"))
    return 0.0


def normalize_standings(raw: Any, params: dict[str, Any] | None = None) -> list[StandingEntry]:
    """First group's entries; rank is order of appearance."""
    if not isinstance(raw, dict):
        return []
    children = raw.get("children")
    group = children[0] if isinstance(children, list) and children and isinstance(children[0], dict) else {}
    standings = group.get("standings")
    entries = standings.get("entries") if isinstance(standings, dict) else None
    if not isinstance(entries, list):
        return []
    out: list[StandingEntry] = []
    for rank, entry in enumerate(entries[:STANDINGS_LIMIT], start=1):
        if not isinstance(entry, dict):
            continue
        try:
            out.append(_standing(entry, rank))
        except Exception as e:
            log.warning("skip_standing_entry", error=str(e))
    return out


def _standing(entry: dict[str, Any], rank: int) -> StandingEntry:
    team = entry.get("team") or {}
    stats = entry.get("stats") or []
    logos = team.get("logos") or []
    ties = _stat(stats, "ties")
    return StandingEntry(
        rank=rank,
        team=to_str(team.get("displayName")),
        abbreviation=to_str(team.get("abbreviation")),
        logo_url=to_str(logos[0].get("href")) if logos and isinstance(logos[0], dict) else "",
        wins=int(_stat(stats, "wins")),
        losses=int(_stat(stats, "losses")),
        ties=int(ties) if ties else None,
        win_percent=_stat(stats, "winPercent"),
    )


def scoreboard_url(sport: str, base: str = ESPN_BASE_URL) -> str:
    return f"{base}/{SPORT_PATHS[sport]}/scoreboard"


def standings_url(sport: str, base: str = ESPN_BASE_URL) -> str:
    return f"{base}/{SPORT_PATHS[sport]}/standings"


def build_scoreboard_adapter(
    http: HttpClient, cache: CacheStore | None = None, *, base: str = ESPN_BASE_URL, ttl_ms: int = 0
) -> FeedAdapter[ScoreboardGame]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(scoreboard_url(params.get("sport", "nfl"), base))

    return FeedAdapter(
        FeedSource(
            name="espn_scoreboard",
            fetch_raw=fetch_raw,
            normalize=normalize_scoreboard,
            ttl_ms=ttl_ms,
            item_model=ScoreboardGame,
        ),
        cache,
    )


def build_standings_adapter(
    http: HttpClient, cache: CacheStore | None = None, *, base: str = ESPN_BASE_URL, ttl_ms: int = 0
) -> FeedAdapter[StandingEntry]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(standings_url(params.get("sport", "nfl"), base))

    return FeedAdapter(
        FeedSource(
            name="espn_standings",
            fetch_raw=fetch_raw,
            normalize=normalize_standings,
            ttl_ms=ttl_ms,
            item_model=StandingEntry,
        ),
        cache,
    )
