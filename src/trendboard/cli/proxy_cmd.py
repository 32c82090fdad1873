"""Proxy server command."""

import typer

from trendboard.proxy.main import run_proxy

app = typer.Typer(help="Start the same-origin proxy")


@app.callback(invoke_without_command=True)
def proxy(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Bind host (default from config)"),
    port: int | None = typer.Option(None, "--port", help="Bind port (default from config)"),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    settings = ctx.obj["settings"]
    run_proxy(
        host=host or settings.proxy_host,
        port=port or settings.proxy_port,
        profile=ctx.obj["profile"],
        config_dir=ctx.obj["config_dir"],
    )


if __name__ == "__main__":
    app()
