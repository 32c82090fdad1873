"""CLI wiring smoke tests."""

from typer.testing import CliRunner

from trendboard.cli.app import app
from trendboard.cli.feeds import describe, parse_params
from trendboard.models import FeedItem, StandingEntry

runner = CliRunner()


def test_feeds_without_source_lists_sources(tmp_path):
    result = runner.invoke(app, ["--config-dir", str(tmp_path), "feeds"])
    assert result.exit_code == 0
    assert "polymarket_events" in result.output
    assert "espn_scoreboard" in result.output


def test_cache_clear_on_duckdb(tmp_path):
    (tmp_path / "default.toml").write_text(
        f'[cache]\nbackend = "duckdb"\ndb_path = "{(tmp_path / "c.duckdb").as_posix()}"\n'
    )
    result = runner.invoke(app, ["--config-dir", str(tmp_path), "cache", "clear", "--source", "odds"])
    assert result.exit_code == 0
    assert "Cleared 0 entries for odds" in result.output
    stats = runner.invoke(app, ["--config-dir", str(tmp_path), "cache", "stats"])
    assert "Total: 0 entries" in stats.output


def test_parse_params():
    assert parse_params(["sport=nhl", "league = premier"]) == {"sport": "nhl", "league": "premier"}


def test_describe_items():
    assert describe(FeedItem(id="1", title="Headline", url="https://x.test")) == "Headline"
    assert describe(StandingEntry(rank=2, team="Rangers", wins=5, losses=1)) == " 2. Rangers  5-1"
