"""Session tokens: issue and resolve the cookie that identifies a learner.

Sign-up and login happen outside this server; sessions it creates are read
here to map a raw token back to its user.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from server.db.models import Session, User


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_session(db: DBSession, user_id: str, ttl_hours: int = 24 * 7) -> str:
    """Create session, return raw token (to set in cookie)."""
    token = secrets.token_urlsafe(32)
    sess = Session(
        user_id=user_id,
        token_hash=hash_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=ttl_hours),
    )
    db.add(sess)
    db.flush()
    return token


def get_user_by_session(db: DBSession, token: str) -> Optional[User]:
    """Return user if the session token is known and unexpired, else None."""
    if not token:
        return None
    sess = db.query(Session).filter(
        Session.token_hash == hash_token(token),
        Session.expires_at > datetime.now(timezone.utc),
    ).first()
    if not sess:
        return None
    return db.query(User).filter(User.id == sess.user_id).first()
