"""Database layer: SQLAlchemy models and session."""

from server.db.models import Base, User, Session, Folder, Flashcard, StudyCount
from server.db.session import get_db, init_db

__all__ = [
    "Base",
    "User",
    "Session",
    "Folder",
    "Flashcard",
    "StudyCount",
    "get_db",
    "init_db",
]
