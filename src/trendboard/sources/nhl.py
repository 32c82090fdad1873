"""NHL web API schedule and standings -> ScoreboardGame / StandingEntry."""

from __future__ import annotations

from typing import Any

import structlog

from trendboard.feeds.adapter import FeedAdapter, FeedSource
from trendboard.feeds.cache import CacheStore
from trendboard.feeds.http import HttpClient
from trendboard.models import GameState, ScoreboardGame, StandingEntry, TeamLine
from trendboard.sources.text import as_list, to_float, to_int, to_str

log = structlog.get_logger(__name__)

NHL_BASE_URL = "https://api-web.nhle.com/v1"
STANDINGS_LIMIT = 16

_STATES = {
    "FUT": GameState.SCHEDULED,
    "PRE": GameState.SCHEDULED,
    "LIVE": GameState.LIVE,
    "CRIT": GameState.LIVE,
    "FINAL": GameState.FINAL,
    "OFF": GameState.FINAL,
}


def logo_url(abbrev: str) -> str:
    return f"https://assets.nhle.com/logos/nhl/svg/{abbrev}_light.svg" if abbrev else ""


def _default(v: Any) -> str:
    """NHL wraps localized strings as {"default": "..."}."""
    if isinstance(v, dict):
        return to_str(v.get("default"))
    return to_str(v)


def _team(raw: dict[str, Any]) -> TeamLine:
    abbrev = to_str(raw.get("abbrev"))
    return TeamLine(
        name=_default(raw.get("name")) or _default(raw.get("placeName")),
        abbreviation=abbrev,
        logo_url=logo_url(abbrev),
        score=to_int(raw.get("score")),
    )


def _clock(raw: dict[str, Any]) -> str | None:
    clock = raw.get("clock") or {}
    period = (raw.get("periodDescriptor") or {}).get("number") or raw.get("period")
    remaining = to_str(clock.get("timeRemaining"))
    if not remaining:
        return None
    return f"P{period} {remaining}" if period else remaining


def parse_game(raw: dict[str, Any]) -> ScoreboardGame:
    state = _STATES.get(to_str(raw.get("gameState")).upper(), GameState.SCHEDULED)
    return ScoreboardGame(
        id=to_str(raw.get("id")),
        start_time=to_str(raw.get("startTimeUTC")),
        state=state,
        home_team=_team(raw.get("homeTeam") or {}),
        away_team=_team(raw.get("awayTeam") or {}),
        clock_display=_clock(raw) if state is GameState.LIVE else None,
        league="NHL",
        venue=_default(raw.get("venue")) or None,
    )


def normalize_schedule(raw: Any, params: dict[str, Any] | None = None) -> list[ScoreboardGame]:
    """gameWeek[].games[] flattened in order."""
    if not isinstance(raw, dict):
        return []
    games: list[ScoreboardGame] = []
    for day in as_list(raw.get("gameWeek")):
        if not isinstance(day, dict):
            continue
        for g in as_list(day.get("games")):
            if not isinstance(g, dict):
                continue
            try:
                games.append(parse_game(g))
            except Exception as e:
                log.warning("skip_nhl_game", game_id=g.get("id"), error=str(e))
    return games


def normalize_standings(raw: Any, params: dict[str, Any] | None = None) -> list[StandingEntry]:
    if not isinstance(raw, dict):
        return []
    out: list[StandingEntry] = []
    for rank, row in enumerate(as_list(raw.get("standings"))[:STANDINGS_LIMIT], start=1):
        if not isinstance(row, dict):
            continue
        try:
            out.append(_standing(row, rank))
        except Exception as e:
            log.warning("skip_nhl_standing", rank=rank, error=str(e))
    return out


def _standing(row: dict[str, Any], rank: int) -> StandingEntry:
    abbrev = _default(row.get("teamAbbrev"))
    return StandingEntry(
        rank=rank,
        team=_default(row.get("teamName")),
        abbreviation=abbrev,
        logo_url=logo_url(abbrev),
        wins=to_int(row.get("wins")),
        losses=to_int(row.get("losses")),
        ties=to_int(row.get("otLosses")),
        win_percent=to_float(row.get("winPctg", row.get("winPct"))),
    )


def build_schedule_adapter(
    http: HttpClient, cache: CacheStore | None = None, *, base: str = NHL_BASE_URL, ttl_ms: int = 0
) -> FeedAdapter[ScoreboardGame]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(f"{base}/schedule/now")

    return FeedAdapter(
        FeedSource(
            name="nhl_schedule",
            fetch_raw=fetch_raw,
            normalize=normalize_schedule,
            ttl_ms=ttl_ms,
            item_model=ScoreboardGame,
        ),
        cache,
    )


def build_standings_adapter(
    http: HttpClient, cache: CacheStore | None = None, *, base: str = NHL_BASE_URL, ttl_ms: int = 0
) -> FeedAdapter[StandingEntry]:
    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(f"{base}/standings/now")

    return FeedAdapter(
        FeedSource(
            name="nhl_standings",
            fetch_raw=fetch_raw,
            normalize=normalize_standings,
            ttl_ms=ttl_ms,
            item_model=StandingEntry,
        ),
        cache,
    )
