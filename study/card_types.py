"""Card status and study action enumerations for the scheduler."""

from enum import Enum


class CardStatus(str, Enum):
    """Where a flashcard sits in the repetition cycle."""
    NEW = "new"
    REVIEW = "review"


class StudyAction(str, Enum):
    """Answers a learner can give; each is legal for one status only."""
    NEW_FORGOT = "new_forgot"
    NEW_GOOD = "new_good"
    REVIEW_FORGOT = "review_forgot"
    REVIEW_HARD = "review_hard"
    REVIEW_NORMAL = "review_normal"
    REVIEW_EASY = "review_easy"


ACTIONS_BY_STATUS = {
    CardStatus.NEW.value: frozenset({
        StudyAction.NEW_FORGOT,
        StudyAction.NEW_GOOD,
    }),
    CardStatus.REVIEW.value: frozenset({
        StudyAction.REVIEW_FORGOT,
        StudyAction.REVIEW_HARD,
        StudyAction.REVIEW_NORMAL,
        StudyAction.REVIEW_EASY,
    }),
}
