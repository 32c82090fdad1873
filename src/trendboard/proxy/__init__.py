"""Same-origin proxy (FastAPI)."""

from trendboard.proxy.main import create_app, run_proxy

__all__ = ["create_app", "run_proxy"]
