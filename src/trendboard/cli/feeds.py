"""Feeds subcommand: one-shot normalized fetch of a single source."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer

from trendboard.config import Settings
from trendboard.feeds.result import FeedResult
from trendboard.sources import news, odds, polymarket, reddit
from trendboard.sources.registry import Feeds

# Params used when the command line gives none for a key
DEFAULT_PARAMS: dict[str, dict[str, Any]] = {
    "polymarket_events": polymarket.events_params(),
    "polymarket_history": {"interval": polymarket.HISTORY_INTERVAL, "fidelity": polymarket.HISTORY_FIDELITY},
    "odds": odds.odds_params("fanduel"),
    "gnews": news.news_params(),
    "google_news": news.news_params(),
    "reddit": reddit.reddit_params(),
    "espn_scoreboard": {"sport": "nfl"},
    "espn_standings": {"sport": "nfl"},
    "sportsdb_events": {"league": "nfl"},
}


def parse_params(pairs: list[str]) -> dict[str, str]:
    """key=value pairs -> dict; a pair without '=' is a usage error."""
    out: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}")
        out[key.strip()] = value.strip()
    return out


def describe(item: Any) -> str:
    title = getattr(item, "title", None)
    if title is not None:
        return title
    team = getattr(item, "team", None)
    if team is not None:
        return f"{item.rank:>2}. {team}  {item.wins}-{item.losses}"
    home, away = getattr(item, "home_team", None), getattr(item, "away_team", None)
    if home is not None:
        if hasattr(home, "name"):
            return f"{away.name} {away.score} @ {home.name} {home.score}  [{item.state.value}]"
        return f"{away} @ {home}"
    return json.dumps(item.model_dump(mode="json")) if hasattr(item, "model_dump") else str(item)


async def fetch_once(settings: Settings, source: str, params: dict[str, Any], ttl_ms: int | None) -> FeedResult[Any]:
    feeds = Feeds(settings)
    try:
        return await feeds.get(source).fetch(params, ttl_ms=ttl_ms)
    finally:
        await feeds.aclose()


def fetch(
    ctx: typer.Context,
    source: str | None = typer.Argument(None, help="Source name; omit to list sources"),
    param: list[str] = typer.Option([], "--param", "-P", help="Query param as key=value (repeatable)"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the cache for this fetch"),
) -> None:
    """Fetch SOURCE once through its adapter and print the normalized items."""
    settings = ctx.obj["settings"]
    if source is None:
        feeds = Feeds(settings)
        try:
            names = sorted(feeds.all())
        finally:
            asyncio.run(feeds.aclose())
        for name in names:
            typer.echo(f"  {name}")
        return
    params = {**DEFAULT_PARAMS.get(source, {}), **parse_params(param)}
    try:
        result = asyncio.run(fetch_once(settings, source, params, 0 if no_cache else None))
    except KeyError as e:
        typer.echo(str(e.args[0]), err=True)
        raise typer.Exit(code=2) from e
    if as_json:
        typer.echo(json.dumps(result.as_dict(), indent=2))
        return
    typer.echo(f"{source}: {result.status.value} ({result.cache.value}), {len(result)} items")
    if result.message:
        typer.echo(f"  {result.message}")
    for item in result.items:
        typer.echo(f"  {describe(item)}")
