"""Accounts, the language catalogue and learning progress."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from app.models import Language, LearningProgress, Lesson, ProficiencyLevel, User
from app.utils import hash_password, needs_rehash, verify_password

from .conftest import LESSON_JSON


async def _add_lessons(session_factory, language, *titles):
    ids = []
    async with session_factory() as session:
        for title in titles:
            lesson = Lesson(
                title=title,
                description="AI-generated lesson",
                language_id=language.id,
                level=ProficiencyLevel.BEGINNER,
                content=LESSON_JSON,
            )
            session.add(lesson)
            await session.flush()
            ids.append(lesson.id)
        await session.commit()
    return ids


async def test_register_returns_token_and_user(anonymous_client):
    response = await anonymous_client.post(
        "/api/auth/register",
        json={"email": "new@example.com", "password": "s3cret-pass", "name": "Nina"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["name"] == "Nina"


async def test_duplicate_registration_is_rejected(anonymous_client, user):
    response = await anonymous_client.post(
        "/api/auth/register",
        json={"email": user.email, "password": "another-pass", "name": "Copy"},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User already exists"}


async def test_login_token_authorises_requests(anonymous_client, user, language):
    login = await anonymous_client.post(
        "/api/auth/login",
        json={"email": "learner@example.com", "password": "correct-horse"},
    )
    assert login.status_code == 200
    token = login.json()["token"]

    response = await anonymous_client.get(
        "/api/progress/language/fr-id",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}


@pytest.mark.parametrize(
    "credentials",
    [
        {"email": "learner@example.com", "password": "wrong-horse"},
        {"email": "nobody@example.com", "password": "correct-horse"},
    ],
)
async def test_bad_credentials_are_401(anonymous_client, user, credentials):
    response = await anonymous_client.post("/api/auth/login", json=credentials)

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


async def test_garbage_token_is_401(anonymous_client, user):
    response = await anonymous_client.get(
        "/api/progress/language/fr-id",
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401


async def test_languages_are_listed_by_name(anonymous_client, session_factory, language):
    async with session_factory() as session:
        session.add(Language(id="de-id", name="German", code="de"))
        session.add(Language(id="ar-id", name="Arabic", code="ar"))
        await session.commit()

    response = await anonymous_client.get("/api/languages/list")

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["data"]] == [
        "Arabic",
        "French",
        "German",
    ]


async def test_progress_update_creates_then_updates(client, session_factory, user, language):
    (lesson_id,) = await _add_lessons(session_factory, language, "Greetings")

    first = await client.post(
        "/api/progress/lesson",
        json={"lessonId": lesson_id, "score": 40, "completed": False},
    )
    second = await client.post(
        "/api/progress/lesson",
        json={"lessonId": lesson_id, "score": 90, "completed": True},
    )

    assert first.status_code == second.status_code == 200
    assert second.json()["message"] == "Progress updated successfully"
    assert second.json()["data"]["score"] == 90
    assert second.json()["data"]["completed"] is True

    async with session_factory() as session:
        rows = (
            await session.execute(
                select(LearningProgress).where(LearningProgress.user_id == user.id)
            )
        ).scalars().all()
    assert len(rows) == 1


async def test_progress_for_missing_lesson_is_404(client):
    response = await client.post(
        "/api/progress/lesson",
        json={"lessonId": "missing", "score": 10, "completed": False},
    )

    assert response.status_code == 404


async def test_score_outside_range_is_rejected(client, session_factory, language):
    (lesson_id,) = await _add_lessons(session_factory, language, "Numbers")

    response = await client.post(
        "/api/progress/lesson",
        json={"lessonId": lesson_id, "score": 140, "completed": True},
    )

    assert response.status_code == 422


async def test_language_progress_defaults_untouched_lessons(client, session_factory, language):
    done_id, fresh_id = await _add_lessons(session_factory, language, "Greetings", "Numbers")
    await client.post(
        "/api/progress/lesson",
        json={"lessonId": done_id, "score": 75, "completed": True},
    )

    response = await client.get("/api/progress/language/fr-id")

    assert response.status_code == 200
    items = {item["lesson"]["id"]: item for item in response.json()["data"]}
    assert items[done_id]["progress"] == {"completed": True, "score": 75}
    assert items[fresh_id]["progress"] == {"completed": False, "score": 0}
    assert items[fresh_id]["lesson"]["title"] == "Numbers"


async def test_login_upgrades_weak_password_hash(anonymous_client, session_factory):
    async with session_factory() as session:
        legacy = User(
            email="legacy@example.com",
            name="Legacy Learner",
            password_hash=hash_password("old-but-valid", iterations=1_000),
        )
        session.add(legacy)
        await session.commit()
        legacy_id = legacy.id

    response = await anonymous_client.post(
        "/api/auth/login",
        json={"email": "legacy@example.com", "password": "old-but-valid"},
    )

    assert response.status_code == 200
    async with session_factory() as session:
        stored = await session.get(User, legacy_id)
    assert not needs_rehash(stored.password_hash)
    assert verify_password("old-but-valid", stored.password_hash)
