"""Spaced repetition scheduler for vocabulary flashcards."""

import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Union

from study.card_types import ACTIONS_BY_STATUS, CardStatus, StudyAction
from study.models import CardState

MIN_EASE_FACTOR = 1.3
INITIAL_INTERVAL = 1.0
FORGOT_EASE_PENALTY = 0.2
HARD_INTERVAL_MULTIPLIER = 1.1
EASY_EASE_BONUS = 0.15
EASY_INTERVAL_BONUS = 0.3
NEW_CARD_DELAY = timedelta(hours=5)


class InvalidActionError(ValueError):
    """Raised when an action is unknown or illegal for the card's status."""


def end_of_day(dt: datetime) -> datetime:
    """Same date as dt at 23:59:59.999."""
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def round_half_away_from_zero(value: float) -> int:
    # Compare the fraction rather than adding 0.5, which can round up in floats.
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


def calculate_next_review(interval: float, now: datetime) -> datetime:
    """
    Due time for a card with the given interval.

    The day offset is the interval rounded to whole days; the interval
    itself is left untouched by callers.
    """
    days = round_half_away_from_zero(interval)
    return end_of_day(now + timedelta(days=days))


def validate_action(status: str, action: Union[StudyAction, str]) -> StudyAction:
    """
    Coerce action to a StudyAction legal for status.

    Raises:
        InvalidActionError if action is unknown or not allowed for status.
    """
    try:
        action = StudyAction(action)
    except ValueError:
        raise InvalidActionError(f"Unknown study action: {action!r}")

    allowed = ACTIONS_BY_STATUS.get(status)
    if allowed is None:
        raise InvalidActionError(f"Unknown card status: {status!r}")
    if action not in allowed:
        raise InvalidActionError(
            f"Action {action.value!r} is not valid for a card with status {status!r}"
        )
    return action


def transition(
    state: CardState,
    action: Union[StudyAction, str],
    now: datetime,
) -> CardState:
    """
    Compute the scheduling state after a study action.

    Args:
        state:  Current scheduling fields (not modified)
        action: One of StudyAction, legal for state.status
        now:    Current local wall-clock time

    Returns:
        A new CardState.

    Raises:
        InvalidActionError on an action/status mismatch.
    """
    action = validate_action(state.status, action)

    if action is StudyAction.NEW_FORGOT:
        # Stays new and is immediately studiable again; not counted.
        return replace(state, next_review=now)

    if action is StudyAction.NEW_GOOD:
        new_state = replace(
            state,
            status=CardStatus.REVIEW.value,
            interval=INITIAL_INTERVAL,
            ease_factor=MIN_EASE_FACTOR,
            next_review=end_of_day(now + NEW_CARD_DELAY),
        )
    elif action is StudyAction.REVIEW_FORGOT:
        new_state = replace(
            state,
            interval=INITIAL_INTERVAL,
            ease_factor=max(MIN_EASE_FACTOR, state.ease_factor - FORGOT_EASE_PENALTY),
            lapse_count=state.lapse_count + 1,
            next_review=calculate_next_review(INITIAL_INTERVAL, now),
        )
    else:
        ease_factor = state.ease_factor
        if action is StudyAction.REVIEW_HARD:
            interval = state.interval * HARD_INTERVAL_MULTIPLIER
        elif action is StudyAction.REVIEW_NORMAL:
            interval = state.interval * state.ease_factor
        else:
            # EASY grows the interval with the ease factor from before its bump.
            interval = state.interval * (state.ease_factor + EASY_INTERVAL_BONUS)
            ease_factor = state.ease_factor + EASY_EASE_BONUS
        new_state = replace(
            state,
            interval=interval,
            ease_factor=ease_factor,
            next_review=calculate_next_review(interval, now),
        )

    return replace(new_state, review_count=state.review_count + 1)
