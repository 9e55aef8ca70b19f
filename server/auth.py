"""Auth dependency: extract session from cookie, resolve user."""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session as DBSession

from server.config import Settings
from server.db.models import User
from server.db.session import get_session_factory
from server.dependencies import get_settings
from server.services import auth_service


def get_db_session(settings: Settings = Depends(get_settings)):
    factory = get_session_factory(settings)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_current_user_optional(
    request: Request,
    db: DBSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    """Return current user or None if not authenticated."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    return auth_service.get_user_by_session(db, token)


def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """Require authenticated user. Raises 401 if not logged in."""
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
