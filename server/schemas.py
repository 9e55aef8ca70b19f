"""Pydantic request/response schemas for the Lexicard API."""

from typing import List, Optional
from pydantic import BaseModel, Field


# ---- Flashcards ----

class FlashcardResponse(BaseModel):
    id: str
    folder_id: Optional[str] = None
    name: str
    meaning: str
    status: str
    interval: float
    ease_factor: float
    lapse_count: int
    next_review: Optional[str] = None
    review_count: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ---- Study ----

class StudyStatistics(BaseModel):
    review_count: int
    new_count: int


class NextFlashcardResponse(BaseModel):
    flashcard: Optional[FlashcardResponse] = None
    statistics: StudyStatistics


class StudyActionRequest(BaseModel):
    # Plain string: unknown actions are rejected by the scheduler with a 400.
    action: str = Field(..., min_length=1, max_length=32)


# ---- Statistics ----

class SummaryStatisticsResponse(BaseModel):
    total_flashcards: int
    total_folders: int
    new_words_count: int
    review_words_count: int


class DailyStatEntry(BaseModel):
    date: str
    new_count: int
    review_count: int
    total: int


class NearestReviewFolderResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    new_count: int
    review_count: int
    nearest_review_date: Optional[str] = None
    nearest_flashcard_name: Optional[str] = None
    is_review_mode: bool
