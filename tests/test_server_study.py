"""Tests for study-related API endpoints."""

import sys
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient
from server.app import app
from server.config import Settings
from server.db.models import Flashcard, Folder, StudyCount, User
from server.db.session import get_session_factory, init_db, reset_engine
from server.dependencies import get_clock, get_settings
from server.services import auth_service

NOW = datetime(2024, 1, 1, 10, 0, 0)


# ============================================================================
# Helpers
# ============================================================================

def _setup(tmp_dir: Path):
    """Fresh DB with two users; returns (settings, ids) where ids holds tokens and rows."""
    reset_engine()
    settings = Settings(database_url=f"sqlite:///{tmp_dir / 'test.db'}")
    init_db(settings)

    db = get_session_factory(settings)()
    me = User(email="me@x.com", password_hash="x")
    other = User(email="other@x.com", password_hash="x")
    db.add_all([me, other])
    db.flush()

    folder = Folder(user_id=me.id, name="Animals")
    foreign = Folder(user_id=other.id, name="Theirs")
    db.add_all([folder, foreign])
    db.flush()

    overdue = Flashcard(folder_id=folder.id, name="cat", meaning="con meo", status="review",
                        interval=2.0, ease_factor=2.0, next_review=NOW - timedelta(days=3))
    recent = Flashcard(folder_id=folder.id, name="dog", meaning="con cho", status="review",
                       interval=2.0, ease_factor=2.0, next_review=NOW - timedelta(days=1))
    fresh = Flashcard(folder_id=folder.id, name="bird", meaning="con chim")
    theirs = Flashcard(folder_id=foreign.id, name="fish", meaning="con ca")
    db.add_all([overdue, recent, fresh, theirs])
    db.flush()

    ids = {
        "token": auth_service.create_session(db, me.id),
        "user": me.id,
        "folder": folder.id,
        "foreign_folder": foreign.id,
        "overdue": overdue.id,
        "recent": recent.id,
        "fresh": fresh.id,
        "theirs": theirs.id,
    }
    db.commit()
    db.close()

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    return settings, ids


def _client(settings: Settings, token: str) -> TestClient:
    return TestClient(app, cookies={settings.session_cookie_name: token})


# ============================================================================
# Tests: auth guard and health
# ============================================================================

def test_health():
    client = TestClient(app)
    assert client.get("/health").json() == {"ok": True}


def test_study_routes_require_session():
    with tempfile.TemporaryDirectory() as tmp:
        settings, _ = _setup(Path(tmp))
        try:
            client = TestClient(app)
            assert client.get("/study/next-to-study").status_code == 401
            assert client.get("/study/statistics/summary").status_code == 401
            r = _client(settings, "bogus").get("/study/nearest-review-folder")
            assert r.status_code == 401
        finally:
            app.dependency_overrides.clear()
            reset_engine()


# ============================================================================
# Tests: /study/next-to-study
# ============================================================================

def test_next_to_study_returns_most_overdue():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            resp = client.get("/study/next-to-study")
            assert resp.status_code == 200
            body = resp.json()
            assert body["flashcard"]["id"] == ids["overdue"]
            assert body["flashcard"]["name"] == "cat"
            assert body["statistics"] == {"review_count": 2, "new_count": 1}
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_next_to_study_foreign_folder_404():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            resp = client.get("/study/next-to-study", params={"folder_id": ids["foreign_folder"]})
            assert resp.status_code == 404
        finally:
            app.dependency_overrides.clear()
            reset_engine()


# ============================================================================
# Tests: /study/flashcards/{id}/study-action
# ============================================================================

def test_study_action_new_good():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            resp = client.post(
                f"/study/flashcards/{ids['fresh']}/study-action",
                json={"action": "new_good"},
            )
            assert resp.status_code == 200
            body = resp.json()
            assert body["status"] == "review"
            assert body["interval"] == 1
            assert body["ease_factor"] == 1.3
            assert body["review_count"] == 1
            assert body["next_review"] == "2024-01-01T23:59:59.999000"

            db = get_session_factory(settings)()
            try:
                row = db.query(StudyCount).filter(StudyCount.user_id == ids["user"]).one()
                assert row.day == date(2024, 1, 1)
                assert (row.new_count, row.review_count) == (1, 0)
            finally:
                db.close()
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_study_action_error_mapping():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            url = "/study/flashcards/{}/study-action"

            r = client.post(url.format("missing"), json={"action": "new_good"})
            assert r.status_code == 404
            r = client.post(url.format(ids["theirs"]), json={"action": "new_good"})
            assert r.status_code == 403
            r = client.post(url.format(ids["fresh"]), json={"action": "review_hard"})
            assert r.status_code == 400
            r = client.post(url.format(ids["fresh"]), json={"action": "nope"})
            assert r.status_code == 400
            r = client.post(url.format(ids["fresh"]), json={})
            assert r.status_code == 422
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_study_flow_updates_statistics():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            url = "/study/flashcards/{}/study-action"
            assert client.post(url.format(ids["overdue"]), json={"action": "review_easy"}).status_code == 200
            assert client.post(url.format(ids["recent"]), json={"action": "review_normal"}).status_code == 200

            body = client.get("/study/next-to-study").json()
            assert body["flashcard"]["id"] == ids["fresh"]
            assert body["statistics"] == {"review_count": 0, "new_count": 1}

            summary = client.get("/study/statistics/summary").json()
            assert summary == {
                "total_flashcards": 3,
                "total_folders": 1,
                "new_words_count": 1,
                "review_words_count": 0,
            }

            daily = client.get("/study/statistics/daily", params={"days": 3}).json()
            assert [d["date"] for d in daily] == ["2023-12-30", "2023-12-31", "2024-01-01"]
            assert daily[-1] == {"date": "2024-01-01", "new_count": 0, "review_count": 2, "total": 2}
        finally:
            app.dependency_overrides.clear()
            reset_engine()


# ============================================================================
# Tests: statistics routes
# ============================================================================

def test_statistics_folder_counts():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            resp = client.get("/study/statistics", params={"folder_id": ids["folder"]})
            assert resp.json() == {"review_count": 2, "new_count": 1}
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_daily_statistics_defaults_and_validation():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            daily = client.get("/study/statistics/daily").json()
            assert len(daily) == settings.daily_stats_default_days
            assert all(d["total"] == 0 for d in daily)

            assert client.get("/study/statistics/daily", params={"days": 0}).status_code == 400
            too_many = settings.daily_stats_max_days + 1
            assert client.get("/study/statistics/daily", params={"days": too_many}).status_code == 400
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_nearest_review_folder():
    with tempfile.TemporaryDirectory() as tmp:
        settings, ids = _setup(Path(tmp))
        try:
            client = _client(settings, ids["token"])
            body = client.get("/study/nearest-review-folder").json()
            assert body["id"] == ids["folder"]
            assert body["is_review_mode"] is True
            assert body["nearest_flashcard_name"] == "cat"
            assert body["review_count"] == 2
            assert body["new_count"] == 1
        finally:
            app.dependency_overrides.clear()
            reset_engine()
