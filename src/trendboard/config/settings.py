"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"

# Seconds; 0 disables caching for the source
_DEFAULT_TTL_SEC: dict[str, int] = {
    "polymarket_events": 0,
    "polymarket_history": 300,
    "odds": 6 * 60 * 60,
    "gnews": 24 * 60 * 60,
    "google_news": 24 * 60 * 60,
    "apisports_games": 6 * 60 * 60,
    "reddit": 0,
    "techmeme": 0,
    "espn_scoreboard": 0,
    "espn_standings": 0,
    "nhl_schedule": 0,
    "nhl_standings": 0,
    "sportsdb_events": 0,
}

# Seconds between background refreshes; 0 means manual refresh only
_DEFAULT_REFRESH_SEC: dict[str, int] = {
    "markets": 300,
    "news": 300,
    "reddit": 300,
    "techmeme": 900,
    "scores": 60,
    "odds": 0,
}

_KEY_ENV = {
    "gnews": "TRENDBOARD_GNEWS_KEY",
    "odds_api": "TRENDBOARD_ODDS_API_KEY",
    "api_sports": "TRENDBOARD_API_SPORTS_KEY",
}


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    cwd_config = Path.cwd() / "config"
    if cwd_config.exists():
        return cwd_config
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    config_dir = _find_config_dir(config_dir)
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = config_dir / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        http: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        refresh: dict[str, Any] | None = None,
        feeds: dict[str, Any] | None = None,
        keys: dict[str, Any] | None = None,
        proxy: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.http = http or {}
        self.cache = cache or {}
        self.refresh = refresh or {}
        self.feeds = feeds or {}
        self.keys = keys or {}
        self.proxy = proxy or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            http=raw.get("http"),
            cache=raw.get("cache"),
            refresh=raw.get("refresh"),
            feeds=raw.get("feeds"),
            keys=raw.get("keys"),
            proxy=raw.get("proxy"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def http_timeout_sec(self) -> float:
        return float(self.http.get("timeout_sec", 10.0))

    @property
    def user_agent(self) -> str:
        return self.http.get("user_agent", "Mozilla/5.0 (compatible; trendboard/0.1)")

    @property
    def cache_backend(self) -> str:
        return self.cache.get("backend", "memory")

    @property
    def cache_db_path(self) -> str:
        return self.cache.get("db_path", "data/trendboard.duckdb")

    @property
    def cache_max_entries(self) -> int:
        return int(self.cache.get("max_entries", 256))

    def ttl_ms(self, source: str) -> int:
        section = self.feeds.get(source) or {}
        return int(section.get("ttl_sec", _DEFAULT_TTL_SEC.get(source, 0))) * 1000

    def refresh_interval_sec(self, widget: str) -> int:
        return int(self.refresh.get(f"{widget}_sec", _DEFAULT_REFRESH_SEC.get(widget, 300)))

    def api_key(self, name: str) -> str | None:
        """Environment beats the config file; empty strings count as unset."""
        env = _KEY_ENV.get(name)
        value = (os.environ.get(env) if env else None) or self.keys.get(name)
        return value or None

    @property
    def use_reddit_rss(self) -> bool:
        return bool((self.feeds.get("reddit") or {}).get("use_rss", False))

    @property
    def proxy_base_url(self) -> str | None:
        return (self.proxy.get("base_url") or "").rstrip("/") or None

    @property
    def proxy_allow_origins(self) -> list[str]:
        return list(self.proxy.get("allow_origins") or ["*"])

    @property
    def proxy_host(self) -> str:
        return self.proxy.get("host", "127.0.0.1")

    @property
    def proxy_port(self) -> int:
        return int(self.proxy.get("port", 8000))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
