"""Config loading, profile overlay and key resolution."""

from trendboard.config import Settings, get_settings, load_config


def _write_config(tmp_path):
    (tmp_path / "default.toml").write_text(
        """
[http]
timeout_sec = 10.0

[cache]
backend = "memory"
max_entries = 64

[refresh]
markets_sec = 300

[feeds.odds]
ttl_sec = 21600

[keys]
gnews = ""

[proxy]
base_url = ""

[logging]
level = "INFO"
"""
    )
    (tmp_path / "dev.toml").write_text(
        """
[cache]
backend = "duckdb"

[keys]
gnews = "from-file"

[proxy]
base_url = "http://localhost:8000/"

[logging]
level = "debug"
"""
    )


def test_profile_overlays_default(tmp_path):
    _write_config(tmp_path)
    raw = load_config("dev", tmp_path)
    assert raw["cache"] == {"backend": "duckdb", "max_entries": 64}
    settings = get_settings("dev", tmp_path)
    assert settings.cache_backend == "duckdb"
    assert settings.cache_max_entries == 64
    assert settings.logging_level == "DEBUG"
    assert settings.proxy_base_url == "http://localhost:8000"


def test_missing_profile_file_is_ignored(tmp_path):
    _write_config(tmp_path)
    settings = get_settings("prod", tmp_path)
    assert settings.cache_backend == "memory"
    assert settings.proxy_base_url is None


def test_missing_config_dir_gives_defaults(tmp_path):
    settings = get_settings(None, tmp_path / "nowhere")
    assert settings.http_timeout_sec == 10.0
    assert settings.cache_backend == "memory"
    assert settings.proxy_allow_origins == ["*"]


def test_ttl_and_refresh_defaults():
    settings = Settings.from_dict({"feeds": {"odds": {"ttl_sec": 60}}, "refresh": {"scores_sec": 30}})
    assert settings.ttl_ms("odds") == 60_000
    assert settings.ttl_ms("gnews") == 24 * 60 * 60 * 1000
    assert settings.ttl_ms("espn_scoreboard") == 0
    assert settings.ttl_ms("unknown") == 0
    assert settings.refresh_interval_sec("scores") == 30
    assert settings.refresh_interval_sec("techmeme") == 900
    assert settings.refresh_interval_sec("odds") == 0


def test_api_key_env_beats_file(monkeypatch):
    settings = Settings.from_dict({"keys": {"gnews": "from-file", "odds_api": ""}})
    assert settings.api_key("gnews") == "from-file"
    assert settings.api_key("odds_api") is None
    monkeypatch.setenv("TRENDBOARD_GNEWS_KEY", "from-env")
    assert settings.api_key("gnews") == "from-env"
