"""Study orchestration: pick the next flashcard and apply study actions.

All functions return JSON-serializable dicts.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from server.db.models import Flashcard, Folder
from server.services import stats_service
from study.card_types import CardStatus, StudyAction
from study.models import CardState
from study.scheduler import InvalidActionError, transition, validate_action

logger = logging.getLogger("lexicard.study")

__all__ = [
    "NotFoundError",
    "ForbiddenError",
    "InvalidActionError",
    "flashcard_to_dict",
    "get_next_flashcard",
    "apply_study_action",
]


class NotFoundError(LookupError):
    """Referenced flashcard or folder does not exist (or is not visible)."""


class ForbiddenError(PermissionError):
    """The user does not own the referenced flashcard."""


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def flashcard_to_dict(card: Flashcard) -> Dict[str, Any]:
    """Convert a Flashcard row to a JSON-safe dict."""
    return {
        "id": card.id,
        "folder_id": card.folder_id,
        "name": card.name,
        "meaning": card.meaning,
        "status": card.status,
        "interval": card.interval,
        "ease_factor": card.ease_factor,
        "lapse_count": card.lapse_count,
        "next_review": _iso(card.next_review),
        "review_count": card.review_count,
        "created_at": _iso(card.created_at),
        "updated_at": _iso(card.updated_at),
    }


def _state_of(card: Flashcard) -> CardState:
    return CardState(
        status=card.status,
        interval=card.interval,
        ease_factor=card.ease_factor,
        lapse_count=card.lapse_count,
        review_count=card.review_count,
        next_review=card.next_review,
    )


def get_next_flashcard(
    db: DBSession,
    user_id: str,
    folder_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Choose the flashcard the user should study next.

    Due review cards come first, the most overdue (earliest next_review) winning;
    otherwise any new card; otherwise None.

    Returns:
        {flashcard, statistics: {review_count, new_count}}

    Raises:
        NotFoundError if folder_id is given but is not one of the user's folders.
    """
    now = now or datetime.now()

    if folder_id:
        folder = (
            db.query(Folder)
            .filter(Folder.id == folder_id, Folder.user_id == user_id)
            .first()
        )
        if folder is None:
            raise NotFoundError(f"Folder not found: {folder_id}")

    scope = stats_service.scoped_flashcards(db, user_id, folder_id)

    card = (
        stats_service.filter_due_reviews(scope, now)
        .order_by(Flashcard.next_review.asc(), Flashcard.id.asc())
        .first()
    )
    if card is None:
        card = (
            stats_service.filter_new(scope)
            .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
            .first()
        )

    statistics = stats_service.get_study_statistics(db, user_id, folder_id, now)
    logger.debug(
        "Next card for user %s (folder=%s): %s",
        user_id, folder_id, card.id if card else None,
    )
    return {
        "flashcard": flashcard_to_dict(card) if card is not None else None,
        "statistics": statistics,
    }


def apply_study_action(
    db: DBSession,
    user_id: str,
    flashcard_id: str,
    action: Union[StudyAction, str],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Apply a learner's answer to a flashcard and persist the new schedule.

    Every action except new_forgot also bumps the user's study count for
    today: new_good on a new card counts as a new word, the rest as reviews.

    Raises:
        NotFoundError if the flashcard does not exist.
        ForbiddenError if the flashcard's folder belongs to another user.
        InvalidActionError if the action does not fit the card's status.
    """
    now = now or datetime.now()

    card = db.query(Flashcard).filter(Flashcard.id == flashcard_id).first()
    if card is None:
        raise NotFoundError(f"Flashcard not found: {flashcard_id}")

    # Cards outside any folder have no owner to check against.
    if card.folder is not None and card.folder.user_id != user_id:
        raise ForbiddenError(f"Flashcard {flashcard_id} belongs to another user")

    previous = _state_of(card)
    action = validate_action(previous.status, action)
    updated = transition(previous, action, now)

    card.status = updated.status
    card.interval = updated.interval
    card.ease_factor = updated.ease_factor
    card.lapse_count = updated.lapse_count
    card.review_count = updated.review_count
    card.next_review = updated.next_review
    db.flush()

    if action is not StudyAction.NEW_FORGOT:
        is_new_word = previous.status == CardStatus.NEW.value and action is StudyAction.NEW_GOOD
        # Counters are best-effort; the card update above must survive their failure.
        try:
            with db.begin_nested():
                stats_service.increment_study_count(db, user_id, is_new_word, now.date())
        except SQLAlchemyError:
            logger.exception("Study count update failed for user %s", user_id)

    logger.info(
        "Flashcard %s: %s -> status=%s interval=%.4f ease=%.2f next_review=%s",
        card.id, action.value, card.status, card.interval, card.ease_factor,
        _iso(card.next_review),
    )
    return flashcard_to_dict(card)
