"""Cache subcommand: clear, stats."""

from __future__ import annotations

import typer

from trendboard.sources.registry import build_cache

app = typer.Typer(help="Feed cache maintenance")


@app.command("clear")
def clear(
    ctx: typer.Context,
    source: str | None = typer.Option(None, "--source", "-s", help="Only clear this source"),
) -> None:
    """Drop cached entries (all, or one source)."""
    settings = ctx.obj["settings"]
    cache = build_cache(settings)
    try:
        n = cache.clear(source)
    finally:
        close = getattr(cache, "close", None)
        if close is not None:
            close()
    typer.echo(f"Cleared {n} entries" + (f" for {source}" if source else ""))


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show cached entries per source (persistent backend only)."""
    settings = ctx.obj["settings"]
    if settings.cache_backend != "duckdb":
        typer.echo("Cache backend is in-memory; nothing persists between runs.")
        return
    from trendboard.storage.cache import DuckDBCache

    cache = DuckDBCache(settings.cache_db_path)
    try:
        rows = cache.stats()
    finally:
        cache.close()
    for row in rows:
        typer.echo(f"  {row['source']:<20} {row['entries']:>5}  newest={row['newest']}")
    typer.echo(f"Total: {sum(r['entries'] for r in rows)} entries")
