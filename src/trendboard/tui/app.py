"""Textual TUI dashboard - one panel per widget, each driven by a RefreshController."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Static

from trendboard.display.format import (
    format_compact,
    format_countdown,
    format_percent,
    format_time,
    format_volume,
    format_win_percent,
    game_odds,
)
from trendboard.models import GameState
from trendboard.models.market import to_percent
from trendboard.refresh.controller import RefreshController
from trendboard.sources import news, odds, polymarket, reddit
from trendboard.sources.registry import Feeds


class PanelHeader(Static):
    """Title, load state and time to next refresh."""

    title = reactive("")
    state = reactive("Loading...")
    countdown = reactive(0)
    manual = reactive(False)

    def render(self) -> str:
        timer = "manual" if self.manual else f"next {format_countdown(self.countdown)}"
        return f"[bold]{self.title}[/]  {self.state}  |  {timer}"


class FeedPanel(Vertical):
    """Header plus a table of rows derived from the controller's current items."""

    COLUMNS: tuple[str, ...] = ()

    def __init__(self, title: str, controller: RefreshController, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.panel_title = title
        self.controller = controller
        controller.on_update = lambda _c: self.update_view()

    def compose(self) -> ComposeResult:
        yield PanelHeader()
        yield DataTable(cursor_type="row", zebra_stripes=True)

    def on_mount(self) -> None:
        header = self.query_one(PanelHeader)
        header.title = self.panel_title
        header.manual = self.controller.period_sec <= 0
        self.query_one(DataTable).add_columns(*self.COLUMNS)

    def state_text(self) -> str:
        c = self.controller
        if c.loading:
            return "Loading..."
        if c.needs_configuration:
            return "[yellow]API key required[/]"
        if c.rate_limited:
            return "[yellow]Rate limited, try later[/]"
        if c.refreshing:
            return "Refreshing..."
        if not c.items:
            return "[dim]Nothing to show[/]"
        return f"{len(c.items)} items"

    def rows(self) -> Iterable[tuple[str, ...]]:
        return []

    def update_header(self) -> None:
        header = self.query_one(PanelHeader)
        header.state = self.state_text()
        header.countdown = self.controller.countdown

    def update_view(self) -> None:
        self.update_header()
        table = self.query_one(DataTable)
        table.clear()
        for row in self.rows():
            table.add_row(*row)


class MarketsPanel(FeedPanel):
    COLUMNS = ("Market", "Leader", "Chance", "24h Vol")

    def rows(self) -> Iterable[tuple[str, ...]]:
        for event in self.controller.items:
            if event.is_binary:
                leader, chance = "Yes", format_percent(event.yes_percent)
            else:
                top = event.leading_option
                leader = top.label if top else "-"
                chance = format_percent(to_percent(top.price_probability)) if top else "-"
            yield (event.title[:60], leader[:24], chance, format_volume(event.volume_24h))


class NewsPanel(FeedPanel):
    COLUMNS = ("Headline", "Source", "Published")

    def rows(self) -> Iterable[tuple[str, ...]]:
        for item in self.controller.items:
            yield (item.title[:80], item.source_label[:20], format_time(item.published_at))


class RedditPanel(FeedPanel):
    COLUMNS = ("Post", "Subreddit", "Score", "Comments")

    def rows(self) -> Iterable[tuple[str, ...]]:
        for post in self.controller.items:
            yield (post.title[:80], post.source_label, format_compact(post.score), format_compact(post.comments))


class TechmemePanel(FeedPanel):
    COLUMNS = ("Story", "Published")

    def rows(self) -> Iterable[tuple[str, ...]]:
        for story in self.controller.items:
            yield (story.title[:90], format_time(story.published_at))


class ScoresPanel(FeedPanel):
    """Scoreboard and standings side by side; each slot updates on its own."""

    COLUMNS = ("Away", "Home", "Status")
    STANDINGS_COLUMNS = ("#", "Team", "W", "L", "Pct")

    def compose(self) -> ComposeResult:
        yield PanelHeader()
        with Horizontal():
            yield DataTable(id="games", cursor_type="row")
            yield DataTable(id="standings", cursor_type="row")

    def on_mount(self) -> None:
        header = self.query_one(PanelHeader)
        header.title = self.panel_title
        header.manual = self.controller.period_sec <= 0
        self.query_one("#games", DataTable).add_columns(*self.COLUMNS)
        self.query_one("#standings", DataTable).add_columns(*self.STANDINGS_COLUMNS)

    def rows(self) -> Iterable[tuple[str, ...]]:
        for game in self.controller.slot("games").items:
            if game.state is GameState.SCHEDULED:
                status = format_time(game.start_time)
            elif game.state is GameState.LIVE:
                status = game.clock_display or "Live"
            else:
                status = "Final"
            away, home = game.away_team, game.home_team
            yield (f"{away.abbreviation or away.name} {away.score}", f"{home.abbreviation or home.name} {home.score}", status)

    def standings_rows(self) -> Iterable[tuple[str, ...]]:
        for entry in self.controller.slot("standings").items:
            yield (str(entry.rank), entry.abbreviation or entry.team, str(entry.wins), str(entry.losses), format_win_percent(entry.win_percent))

    def update_view(self) -> None:
        self.update_header()
        games = self.query_one("#games", DataTable)
        games.clear()
        for row in self.rows():
            games.add_row(*row)
        standings = self.query_one("#standings", DataTable)
        standings.clear()
        for row in self.standings_rows():
            standings.add_row(*row)


class OddsPanel(FeedPanel):
    """One slot per bookmaker; a game row shows every bookmaker's two prices."""

    def __init__(self, title: str, controller: RefreshController, bookmakers: list[str], **kwargs: Any) -> None:
        super().__init__(title, controller, **kwargs)
        self.bookmakers = bookmakers
        self.COLUMNS = ("Game", "Start", *(odds.BOOKMAKERS.get(b, b) for b in bookmakers))

    def rows(self) -> Iterable[tuple[str, ...]]:
        first = self.controller.slot(self.bookmakers[0]).items
        by_book = {b: {g.id: g for g in self.controller.slot(b).items} for b in self.bookmakers}
        for game in first:
            cells = []
            for b in self.bookmakers:
                other = by_book[b].get(game.id)
                cells.append(" / ".join(game_odds(other, b)) if other else "- / -")
            yield (f"{game.away_team} @ {game.home_team}", format_time(game.start_time), *cells)


def build_panels(feeds: Feeds) -> list[FeedPanel]:
    settings = feeds.settings
    period = settings.refresh_interval_sec

    markets = RefreshController(
        lambda: feeds.markets.fetch(polymarket.events_params("trending")),
        period("markets"),
        clear_cache=lambda: feeds.markets.clear(),
        name="markets",
    )
    headlines = RefreshController(
        lambda: feeds.news.fetch(news.news_params()),
        period("news"),
        clear_cache=lambda: feeds.news.clear(),
        name="news",
    )
    posts = RefreshController(
        lambda: feeds.reddit.fetch(reddit.reddit_params("popular")),
        period("reddit"),
        clear_cache=lambda: feeds.reddit.clear(),
        name="reddit",
    )
    stories = RefreshController(
        lambda: feeds.techmeme.fetch(),
        period("techmeme"),
        clear_cache=lambda: feeds.techmeme.clear(),
        name="techmeme",
    )
    scores = RefreshController(
        {
            "games": lambda: feeds.espn_scoreboard.fetch({"sport": "nfl"}),
            "standings": lambda: feeds.espn_standings.fetch({"sport": "nfl"}),
        },
        period("scores"),
        clear_cache=lambda: (feeds.espn_scoreboard.clear(), feeds.espn_standings.clear()),
        name="scores",
    )
    bookmakers = list(odds.BOOKMAKERS)
    lines = RefreshController(
        {b: (lambda b=b: feeds.odds.fetch(odds.odds_params(b))) for b in bookmakers},
        period("odds"),
        clear_cache=lambda: feeds.odds.clear(),
        name="odds",
    )
    return [
        MarketsPanel("Markets", markets, id="markets"),
        NewsPanel("News", headlines, id="news"),
        RedditPanel("Reddit", posts, id="reddit"),
        TechmemePanel("Techmeme", stories, id="techmeme"),
        ScoresPanel("NFL", scores, id="scores"),
        OddsPanel("Odds", lines, bookmakers, id="odds"),
    ]


class TrendboardTUI(App[None]):
    """Trendboard TUI - markets, news, social and sports at a glance."""

    TITLE = "Trendboard"
    BINDINGS = [("q", "quit", "Quit"), ("r", "refresh", "Refresh all")]
    CSS = """
    FeedPanel { height: 1fr; border: round $accent; }
    PanelHeader { height: 1; }
    #left, #right { width: 1fr; }
    """

    def __init__(self, feeds: Feeds, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._feeds = feeds
        self._panels = build_panels(feeds)
        self._pending: set[asyncio.Task[Any]] = set()

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            with Vertical(id="left"):
                yield from self._panels[:3]
            with Vertical(id="right"):
                yield from self._panels[3:]
        yield Footer()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def on_mount(self) -> None:
        for panel in self._panels:
            self._spawn(panel.controller.mount())
        self.set_interval(1, self._tick)

    def _tick(self) -> None:
        for panel in self._panels:
            c = panel.controller
            if not (c.loading or c.refreshing):
                self._spawn(c.tick())
            panel.update_header()

    def action_refresh(self) -> None:
        for panel in self._panels:
            self._spawn(panel.controller.refresh_now())
            panel.update_header()

    async def on_unmount(self) -> None:
        for panel in self._panels:
            await panel.controller.unmount()
        for task in list(self._pending):
            task.cancel()
        await self._feeds.aclose()


def run_tui(settings: Any) -> None:
    """Entry point: build adapters from settings and run the TUI."""
    TrendboardTUI(Feeds(settings)).run()
