"""Study statistics: due/new counts, dashboard summary, daily history, and
the per-user daily study counter."""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Query, Session as DBSession

from server.db.models import Flashcard, Folder, StudyCount
from study.card_types import CardStatus

logger = logging.getLogger("lexicard.stats")

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def scoped_flashcards(db: DBSession, user_id: str, folder_id: Optional[str] = None) -> Query:
    """Flashcards reachable through the user's folders, optionally one folder."""
    query = (
        db.query(Flashcard)
        .join(Folder, Flashcard.folder_id == Folder.id)
        .filter(Folder.user_id == user_id)
    )
    if folder_id:
        query = query.filter(Flashcard.folder_id == folder_id)
    return query


def filter_due_reviews(query: Query, now: datetime) -> Query:
    return query.filter(
        Flashcard.status == CardStatus.REVIEW.value,
        Flashcard.next_review.isnot(None),
        Flashcard.next_review <= now,
    )


def filter_new(query: Query) -> Query:
    return query.filter(Flashcard.status == CardStatus.NEW.value)


def count_due_reviews(
    db: DBSession,
    user_id: str,
    folder_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> int:
    now = now or datetime.now()
    return filter_due_reviews(scoped_flashcards(db, user_id, folder_id), now).count()


def count_new(db: DBSession, user_id: str, folder_id: Optional[str] = None) -> int:
    return filter_new(scoped_flashcards(db, user_id, folder_id)).count()


def get_study_statistics(
    db: DBSession,
    user_id: str,
    folder_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Return {review_count, new_count} for the user, optionally one folder."""
    return {
        "review_count": count_due_reviews(db, user_id, folder_id, now),
        "new_count": count_new(db, user_id, folder_id),
    }


def get_summary_statistics(
    db: DBSession,
    user_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Dashboard totals for a user.

    Returns:
        {total_flashcards, total_folders, new_words_count, review_words_count}
    """
    total_folders = db.query(Folder).filter(Folder.user_id == user_id).count()
    return {
        "total_flashcards": scoped_flashcards(db, user_id).count(),
        "total_folders": total_folders,
        "new_words_count": count_new(db, user_id),
        "review_words_count": count_due_reviews(db, user_id, now=now),
    }


def get_daily_statistics(
    db: DBSession,
    user_id: str,
    days: int = 7,
    folder_id: Optional[str] = None,
    today: Optional[date] = None,
    max_days: int = 365,
) -> List[Dict[str, Any]]:
    """
    Per-day study counts for the last `days` days, oldest first.

    Days without activity are zero-filled. Counters are kept per user, so
    folder_id does not narrow the result.

    Raises:
        ValueError if days is outside 1..max_days.
    """
    if days < 1 or days > max_days:
        raise ValueError(f"days must be between 1 and {max_days}, got {days}")
    if folder_id:
        logger.debug("Daily statistics are per-user; ignoring folder_id=%s", folder_id)

    today = today or date.today()
    start = today - timedelta(days=days - 1)

    rows = (
        db.query(StudyCount.day, StudyCount.new_count, StudyCount.review_count)
        .filter(
            StudyCount.user_id == user_id,
            StudyCount.day >= start,
            StudyCount.day <= today,
        )
        .all()
    )
    by_day = {row.day: row for row in rows}

    result = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        row = by_day.get(day)
        new_count = row.new_count if row else 0
        review_count = row.review_count if row else 0
        result.append({
            "date": day.isoformat(),
            "new_count": new_count,
            "review_count": review_count,
            "total": new_count + review_count,
        })
    return result


def _folder_to_dict(folder: Folder) -> Dict[str, Any]:
    return {
        "id": folder.id,
        "user_id": folder.user_id,
        "name": folder.name,
        "description": folder.description,
        "created_at": folder.created_at.isoformat() if folder.created_at else None,
        "updated_at": folder.updated_at.isoformat() if folder.updated_at else None,
    }


def get_nearest_review_folder(
    db: DBSession,
    user_id: str,
    now: Optional[datetime] = None,
) -> Optional[Dict[str, Any]]:
    """
    Pick the folder the user should open next.

    The due review card with the soonest next_review decides the folder
    (is_review_mode=True). With nothing due, the folder holding the most new
    cards is returned instead (is_review_mode=False). None when the user has
    no folders or no folder has new cards.
    """
    now = now or datetime.now()

    nearest = (
        filter_due_reviews(scoped_flashcards(db, user_id), now)
        .order_by(Flashcard.next_review.asc(), Flashcard.id.asc())
        .first()
    )
    if nearest is not None:
        folder = nearest.folder
        result = _folder_to_dict(folder)
        result.update(get_study_statistics(db, user_id, folder.id, now))
        result.update({
            "nearest_review_date": nearest.next_review.isoformat(),
            "nearest_flashcard_name": nearest.name,
            "is_review_mode": True,
        })
        return result

    rows = (
        db.query(Folder, func.count(Flashcard.id))
        .outerjoin(
            Flashcard,
            and_(
                Flashcard.folder_id == Folder.id,
                Flashcard.status == CardStatus.NEW.value,
            ),
        )
        .filter(Folder.user_id == user_id)
        .group_by(Folder.id)
        .order_by(Folder.created_at.asc(), Folder.id.asc())
        .all()
    )
    if not rows:
        return None

    best_folder, best_count = rows[0]
    for folder, new_count in rows[1:]:
        if new_count > best_count:
            best_folder, best_count = folder, new_count
    if best_count == 0:
        return None

    result = _folder_to_dict(best_folder)
    result.update(get_study_statistics(db, user_id, best_folder.id, now))
    result["is_review_mode"] = False
    return result


def increment_study_count(
    db: DBSession,
    user_id: str,
    is_new_word: bool,
    day: date,
) -> None:
    """
    Bump today's new_count or review_count for a user.

    Creates the (user, day) row on first use. The increment happens in the
    database so concurrent actions on the same day are not lost.
    """
    new_inc = 1 if is_new_word else 0
    review_inc = 0 if is_new_word else 1
    dialect = db.get_bind().dialect.name

    insert = _UPSERT_INSERTS.get(dialect)
    if insert is not None:
        stmt = insert(StudyCount).values(
            user_id=user_id,
            day=day,
            new_count=new_inc,
            review_count=review_inc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "day"],
            set_={
                "new_count": StudyCount.new_count + new_inc,
                "review_count": StudyCount.review_count + review_inc,
            },
        )
        db.execute(stmt)
    else:
        result = db.execute(
            update(StudyCount)
            .where(StudyCount.user_id == user_id, StudyCount.day == day)
            .values(
                new_count=StudyCount.new_count + new_inc,
                review_count=StudyCount.review_count + review_inc,
            )
        )
        if result.rowcount == 0:
            db.add(StudyCount(
                user_id=user_id,
                day=day,
                new_count=new_inc,
                review_count=review_inc,
            ))
            db.flush()

    logger.debug(
        "Study count for user %s on %s: +%d new, +%d review",
        user_id, day.isoformat(), new_inc, review_inc,
    )
