"""Configuration for the Lexicard API server."""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Settings:
    """
    Server settings.

    Every field is overridable at construction for testing; unset fields
    fall back to environment variables, then to defaults.
    """
    database_url: Optional[str] = None
    cors_origins: List[str] = field(default_factory=list)
    session_cookie_name: str = "lexicard_session"
    daily_stats_default_days: int = 7
    daily_stats_max_days: int = 365

    def __post_init__(self):
        if self.database_url is None:
            self.database_url = os.environ.get("DATABASE_URL", "sqlite:///./lexicard.db")

        if not self.cors_origins:
            env_origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
            self.cors_origins = [o.strip() for o in env_origins.split(",") if o.strip()]

        env_days = os.environ.get("DAILY_STATS_DEFAULT_DAYS")
        if env_days is not None:
            try:
                self.daily_stats_default_days = int(env_days)
            except ValueError:
                pass
        env_max = os.environ.get("DAILY_STATS_MAX_DAYS")
        if env_max is not None:
            try:
                self.daily_stats_max_days = int(env_max)
            except ValueError:
                pass
