"""FastAPI dependency factories."""

from datetime import datetime
from functools import lru_cache
from typing import Callable

from server.config import Settings


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings -- override via app.dependency_overrides in tests."""
    return Settings()


def get_clock() -> Callable[[], datetime]:
    """Wall clock used for scheduling; tests override it with a fixed time."""
    return datetime.now
