"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from trendboard.config import configure_logging, get_settings

app = typer.Typer(
    name="trendboard",
    help="Trendboard - markets, news, social and sports feeds in one dashboard.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from trendboard.cli import cache_cmd, feeds, proxy_cmd, tui_cmd  # noqa: E402

app.command("feeds")(feeds.fetch)
app.add_typer(cache_cmd.app, name="cache")
app.add_typer(proxy_cmd.app, name="proxy")
app.add_typer(tui_cmd.app, name="tui")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
