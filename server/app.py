"""FastAPI application -- routes for the Lexicard study scheduler."""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session as DBSession

from server.__version__ import __version__
from server.auth import get_current_user, get_db_session
from server.config import Settings
from server.db.models import User
from server.dependencies import get_clock, get_settings
from server.schemas import (
    DailyStatEntry,
    FlashcardResponse,
    NearestReviewFolderResponse,
    NextFlashcardResponse,
    StudyActionRequest,
    StudyStatistics,
    SummaryStatisticsResponse,
)
from server.services import stats_service, study_service
from server.services.study_service import ForbiddenError, InvalidActionError, NotFoundError

logger = logging.getLogger("lexicard")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: create missing tables, nothing else."""
    from server.db.session import init_db
    init_db(get_settings())
    logger.info("Startup: database ready (version %s)", __version__)
    yield
    logger.info("Shutdown: complete")


app = FastAPI(title="Lexicard", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    """Minimal health check. No deps, no DB access."""
    return {"ok": True}


# ---- Study ----

@app.get("/study/next-to-study", response_model=NextFlashcardResponse)
def study_next(
    folder_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Next flashcard to study (most overdue review first, then new) plus counts."""
    try:
        return study_service.get_next_flashcard(db, user.id, folder_id, now=clock())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/study/flashcards/{flashcard_id}/study-action", response_model=FlashcardResponse)
def study_action(
    flashcard_id: str,
    body: StudyActionRequest,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Apply a study action and return the rescheduled flashcard."""
    try:
        return study_service.apply_study_action(
            db, user.id, flashcard_id, body.action, now=clock(),
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidActionError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---- Statistics ----

@app.get("/study/statistics", response_model=StudyStatistics)
def study_statistics(
    folder_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Due review and new card counts, optionally for one folder."""
    return stats_service.get_study_statistics(db, user.id, folder_id, now=clock())


@app.get("/study/statistics/summary", response_model=SummaryStatisticsResponse)
def study_statistics_summary(
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return stats_service.get_summary_statistics(db, user.id, now=clock())


@app.get("/study/statistics/daily", response_model=List[DailyStatEntry])
def study_statistics_daily(
    days: Optional[int] = None,
    folder_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """Per-day study counts, oldest first, zero-filled."""
    if days is None:
        days = settings.daily_stats_default_days
    try:
        return stats_service.get_daily_statistics(
            db, user.id,
            days=days,
            folder_id=folder_id,
            today=clock().date(),
            max_days=settings.daily_stats_max_days,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/study/nearest-review-folder", response_model=Optional[NearestReviewFolderResponse])
def study_nearest_review_folder(
    user: User = Depends(get_current_user),
    db: DBSession = Depends(get_db_session),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Folder to open next: soonest due review, else most new cards, else null."""
    return stats_service.get_nearest_review_folder(db, user.id, now=clock())
