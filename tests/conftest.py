"""Shared fixtures: a throwaway SQLite database, a scripted LLM and an API client."""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Union

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from app.config.settings import GenerationConfig
from app.controllers.dependencies import get_current_user, get_orchestrator
from app.database import create_session_factory, get_session, init_models
from app.main import app
from app.models import Language, User
from app.pipelines.generation import GenerationOrchestrator
from app.utils import hash_password

ScriptItem = Union[str, None, Exception, Callable[[], Awaitable[str]]]


LESSON_JSON = {
    "vocabulary": [
        {"word": "bonjour", "translation": "hello", "example": "Bonjour, Marie !"},
        {"word": "salut", "translation": "hi", "example": "Salut, ça va ?"},
        {"word": "bonsoir", "translation": "good evening", "example": "Bonsoir, madame."},
        {"word": "au revoir", "translation": "goodbye", "example": "Au revoir et merci."},
        {"word": "merci", "translation": "thank you", "example": "Merci beaucoup."},
        {"word": "enchanté", "translation": "nice to meet you", "example": "Enchanté, Paul."},
    ],
    "grammar": "Use 'vous' with strangers and 'tu' with friends.",
    "examples": ["Bonjour, comment allez-vous ?"],
    "exercises": ["Greet your teacher politely."],
    "culturalNotes": "The French often greet with a kiss on the cheek (la bise).",
}

QUIZ_JSON = [
    {
        "question": "How do you say 'hello'?",
        "options": ["bonjour", "merci", "au revoir", "salut"],
        "correctAnswer": 0,
        "explanation": "Bonjour is the standard greeting.",
    },
    {
        "question": "What does 'merci' mean?",
        "options": ["please", "thank you"],
        "correctAnswer": 1,
    },
]

CONVERSATION_JSON = {
    "context": "Ordering a coffee in a Paris café",
    "vocabulary": [{"word": "un café", "translation": "a coffee"}],
    "script": [
        {"targetLanguageText": "Un café, s'il vous plaît.", "translation": "A coffee, please."},
        {"targetLanguageText": "Bien sûr !", "translation": "Of course!"},
    ],
    "culturalNotes": "Coffee at the counter is cheaper than at a table.",
}

FEEDBACK_JSON = {
    "accuracy": 0.82,
    "feedback": "Good attempt, the nasal vowel needs work.",
    "suggestions": ["Round your lips on 'on'", "Keep the final 'r' soft"],
    "phonemes": [{"sound": "on", "accuracy": 0.6, "feedback": "Nasalise more"}],
}


def as_text(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


class ScriptedLlm:
    """Stand-in for the Bedrock client that replays queued responses."""

    def __init__(self) -> None:
        self._script: list[ScriptItem] = []
        self.calls: list[dict[str, Any]] = []

    def queue(self, *items: ScriptItem) -> "ScriptedLlm":
        self._script.extend(items)
        return self

    async def invoke(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str | None:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "max_tokens": max_tokens,
            }
        )
        if not self._script:
            raise AssertionError("LLM called more times than scripted")
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return await item()
        return item


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'langospark.db'}",
        poolclass=NullPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def user(session_factory) -> User:
    async with session_factory() as session:
        learner = User(
            email="learner@example.com",
            name="Test Learner",
            password_hash=hash_password("correct-horse"),
        )
        session.add(learner)
        await session.commit()
        await session.refresh(learner)
        return learner


@pytest_asyncio.fixture
async def language(session_factory) -> Language:
    async with session_factory() as session:
        french = Language(id="fr-id", name="French", code="fr")
        session.add(french)
        await session.commit()
        return french


@pytest.fixture
def llm() -> ScriptedLlm:
    return ScriptedLlm()


@pytest.fixture
def generation_config() -> GenerationConfig:
    return GenerationConfig()


@pytest.fixture
def orchestrator(llm, session_factory, generation_config) -> GenerationOrchestrator:
    return GenerationOrchestrator(llm, session_factory, generation_config)


@pytest_asyncio.fixture
async def anonymous_client(session_factory, orchestrator):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(anonymous_client, user, language):
    async def override_user():
        return user

    app.dependency_overrides[get_current_user] = override_user
    yield anonymous_client
