"""Tests for server/config.py -- Settings defaults and env overrides."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from server.config import Settings


def test_defaults(monkeypatch):
    for var in ("DATABASE_URL", "CORS_ORIGINS", "DAILY_STATS_DEFAULT_DAYS", "DAILY_STATS_MAX_DAYS"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings()
    assert settings.database_url == "sqlite:///./lexicard.db"
    assert settings.cors_origins == ["http://localhost:3000"]
    assert settings.session_cookie_name == "lexicard_session"
    assert settings.daily_stats_default_days == 7
    assert settings.daily_stats_max_days == 365


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/lexicard")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("DAILY_STATS_DEFAULT_DAYS", "14")
    monkeypatch.setenv("DAILY_STATS_MAX_DAYS", "90")
    settings = Settings()
    assert settings.database_url == "postgresql://db/lexicard"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.daily_stats_default_days == 14
    assert settings.daily_stats_max_days == 90


def test_malformed_env_ignored(monkeypatch):
    monkeypatch.setenv("DAILY_STATS_MAX_DAYS", "lots")
    assert Settings().daily_stats_max_days == 365


def test_constructor_wins_over_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/lexicard")
    settings = Settings(database_url="sqlite://", cors_origins=["http://x"])
    assert settings.database_url == "sqlite://"
    assert settings.cors_origins == ["http://x"]
