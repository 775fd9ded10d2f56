"""Generation orchestrator: prompt -> LLM -> parse -> fallback -> persistence.

No database session is held open while the model is being called. Every
persistence step opens its own short transaction through the injected
session factory.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import GenerationConfig, settings
from app.models import (
    ConversationExchange,
    ConversationPractice,
    Language,
    LearningProgress,
    Lesson,
    PronunciationFeedbackRecord,
    Quiz,
)
from app.services.llm_client import LlmInvocationError, TextCompletionClient
from app.services.response_contract import PronunciationFeedback, clamp_feedback
from app.telemetry import observe_generation_latency, record_generation

from .fallback import synthesize_fallback
from .parsing import parse_response
from .persistence import (
    DEFAULT_SCENARIO,
    LESSON_DESCRIPTION,
    lesson_payload,
    lesson_title,
    progress_payload,
)
from .prompts import build_prompt
from .types import (
    ConversationOutcome,
    FeedbackOutcome,
    GenerationError,
    GenerationErrorCode,
    GenerationKind,
    GenerationRequest,
    LanguageInfo,
    LessonOutcome,
    ParsedContent,
    ParseFailure,
    ParseFailureReason,
    PromptBundle,
    QuizOutcome,
    ReplyOutcome,
)

logger = logging.getLogger("app.pipelines.generation")


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


class GenerationOrchestrator:
    """Runs every generation kind end to end."""

    def __init__(
        self,
        llm: TextCompletionClient,
        session_factory: async_sessionmaker[AsyncSession],
        config: GenerationConfig | None = None,
    ) -> None:
        self._llm = llm
        self._session_factory = session_factory
        self._config = config or settings.generation

    async def generate(self, request: GenerationRequest, user_id: int) -> Any:
        """Dispatch ``request`` to the coroutine that handles its kind."""

        if request.kind is GenerationKind.LESSON:
            return await self.generate_lesson(request, user_id)
        if request.kind is GenerationKind.QUIZ:
            return await self.generate_quiz(request)
        if request.kind is GenerationKind.CONVERSATION_PROMPT:
            return await self.generate_conversation(request, user_id)
        if request.kind is GenerationKind.CONVERSATION_REPLY:
            return await self.reply(request, user_id)
        if request.kind is GenerationKind.PRONUNCIATION_FEEDBACK:
            return await self.pronunciation_feedback(request, user_id)
        raise GenerationError(
            GenerationErrorCode.INVALID_REQUEST,
            f"Unsupported generation kind {request.kind!r}",
        )

    # ------------------------------------------------------------------
    # Shared stages
    # ------------------------------------------------------------------

    def _fail(
        self, kind: GenerationKind, code: GenerationErrorCode, message: str
    ) -> GenerationError:
        record_generation(kind.value, "failed")
        return GenerationError(code, message)

    async def _load_language(
        self, kind: GenerationKind, language_id: Optional[str]
    ) -> LanguageInfo:
        if not language_id:
            raise self._fail(
                kind, GenerationErrorCode.INVALID_REQUEST, "languageId is required"
            )
        async with self._session_factory() as session:
            language = await session.get(Language, language_id)
        if language is None:
            raise self._fail(kind, GenerationErrorCode.NOT_FOUND, "Language not found")
        return LanguageInfo(id=language.id, name=language.name, code=language.code)

    async def _invoke(self, kind: GenerationKind, bundle: PromptBundle) -> Optional[str]:
        started = time.perf_counter()
        try:
            raw = await self._llm.invoke(
                system_prompt=bundle.system_prompt,
                user_prompt=bundle.user_prompt,
                max_tokens=bundle.max_tokens,
            )
        finally:
            observe_generation_latency(kind.value, time.perf_counter() - started)
        if raw:
            logger.info("Raw LLM response kind=%s: %s", kind.value, _truncate(raw))
        return raw

    async def _complete(self, kind: GenerationKind, bundle: PromptBundle) -> str:
        """Call the model; transport failures and empty output are request errors."""

        try:
            raw = await self._invoke(kind, bundle)
        except LlmInvocationError as exc:
            logger.error("LLM call failed kind=%s: %s", kind.value, exc)
            raise self._fail(
                kind,
                GenerationErrorCode.LLM_UNAVAILABLE,
                "The AI service is unavailable. Please try again later.",
            ) from exc
        if not raw:
            raise self._fail(
                kind,
                GenerationErrorCode.LLM_UNAVAILABLE,
                "The AI service returned an empty response.",
            )
        return raw

    def _require_parsed(self, kind: GenerationKind, raw: str) -> ParsedContent:
        result = parse_response(kind, raw)
        if isinstance(result, ParseFailure):
            logger.warning(
                "Unusable LLM output kind=%s reason=%s detail=%s",
                kind.value,
                result.reason.value,
                result.detail,
            )
            code = (
                GenerationErrorCode.SHAPE_INVALID
                if result.reason is ParseFailureReason.SHAPE_INVALID
                else GenerationErrorCode.PARSE_FAILURE
            )
            raise self._fail(
                kind, code, f"Could not use the generated {kind.value.lower()} content."
            )
        return result

    # ------------------------------------------------------------------
    # Lessons and quizzes
    # ------------------------------------------------------------------

    async def generate_lesson(
        self, request: GenerationRequest, user_id: int
    ) -> LessonOutcome:
        kind = GenerationKind.LESSON
        language = await self._load_language(kind, request.language_id)
        bundle = build_prompt(request, language, config=self._config)
        raw = await self._complete(kind, bundle)
        parsed = self._require_parsed(kind, raw)

        async with self._session_factory() as session:
            lesson = Lesson(
                title=lesson_title(request.topic, request.level.value, language.name),
                description=LESSON_DESCRIPTION,
                language_id=language.id,
                level=request.level,
                content=parsed.content.to_payload(),
            )
            session.add(lesson)
            await session.flush()
            progress = LearningProgress(
                user_id=user_id,
                lesson_id=lesson.id,
                score=0.0,
                completed=False,
            )
            session.add(progress)
            await session.commit()
            await session.refresh(lesson)
            lesson_data = lesson_payload(lesson)
            progress_data = progress_payload(progress)

        record_generation(kind.value, "generated")
        logger.info("Lesson %s created for user %s", lesson_data["id"], user_id)

        quiz_request = GenerationRequest(
            kind=GenerationKind.QUIZ,
            language_id=language.id,
            level=request.level,
            lesson_id=lesson_data["id"],
            question_count=self._config.default_quiz_questions,
        )
        quiz: Optional[QuizOutcome] = None
        quiz_error: Optional[str] = None
        try:
            quiz = await self.generate_quiz(quiz_request)
        except GenerationError as exc:
            quiz_error = exc.message
            logger.warning(
                "Companion quiz failed for lesson %s: %s", lesson_data["id"], exc.message
            )
        except SQLAlchemyError:
            quiz_error = "Quiz could not be saved."
            logger.exception(
                "Companion quiz persistence failed for lesson %s", lesson_data["id"]
            )
        except Exception:
            quiz_error = "Quiz could not be generated."
            logger.exception("Companion quiz failed for lesson %s", lesson_data["id"])

        return LessonOutcome(
            lesson=lesson_data,
            progress=progress_data,
            quiz=quiz,
            quiz_error=quiz_error,
        )

    async def _existing_quiz(self, session: AsyncSession, lesson_id: str) -> Optional[Quiz]:
        result = await session.execute(select(Quiz).where(Quiz.lesson_id == lesson_id))
        return result.scalar_one_or_none()

    async def generate_quiz(self, request: GenerationRequest) -> QuizOutcome:
        kind = GenerationKind.QUIZ
        if not request.lesson_id:
            raise self._fail(kind, GenerationErrorCode.INVALID_REQUEST, "lessonId is required")

        async with self._session_factory() as session:
            lesson = await session.get(Lesson, request.lesson_id)
            if lesson is None:
                raise self._fail(kind, GenerationErrorCode.NOT_FOUND, "Lesson not found")
            existing = await self._existing_quiz(session, lesson.id)
            if existing is not None:
                record_generation(kind.value, "cached")
                return QuizOutcome(
                    quiz_id=existing.id,
                    lesson_id=existing.lesson_id,
                    questions=existing.questions,
                    created=False,
                )
            language = LanguageInfo(
                id=lesson.language.id,
                name=lesson.language.name,
                code=lesson.language.code,
            )
            lesson_id = lesson.id
            lesson_content = lesson.content
            level = lesson.level

        bundle = build_prompt(
            dataclasses.replace(request, level=level, language_id=language.id),
            language,
            lesson_content=lesson_content,
            config=self._config,
        )
        raw = await self._complete(kind, bundle)
        parsed = self._require_parsed(kind, raw)
        questions = parsed.content.to_payload()["questions"]

        async with self._session_factory() as session:
            quiz = Quiz(lesson_id=lesson_id, questions=questions)
            session.add(quiz)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                winner = await self._existing_quiz(session, lesson_id)
                if winner is None:
                    raise
                logger.info("Quiz for lesson %s was created concurrently", lesson_id)
                record_generation(kind.value, "cached")
                return QuizOutcome(
                    quiz_id=winner.id,
                    lesson_id=winner.lesson_id,
                    questions=winner.questions,
                    created=False,
                )

        record_generation(kind.value, "generated")
        return QuizOutcome(
            quiz_id=quiz.id,
            lesson_id=lesson_id,
            questions=questions,
            created=True,
        )

    # ------------------------------------------------------------------
    # Conversation practice
    # ------------------------------------------------------------------

    async def generate_conversation(
        self, request: GenerationRequest, user_id: int
    ) -> ConversationOutcome:
        kind = GenerationKind.CONVERSATION_PROMPT
        language = await self._load_language(kind, request.language_id)
        bundle = build_prompt(request, language, config=self._config)
        raw = await self._complete(kind, bundle)

        result = parse_response(kind, raw)
        fallback = isinstance(result, ParseFailure)
        if isinstance(result, ParseFailure):
            logger.warning(
                "Conversation output unusable (%s: %s); using fallback script",
                result.reason.value,
                result.detail,
            )
            content = synthesize_fallback(request, raw, config=self._config)
        else:
            content = result.content
        payload = content.to_payload()
        scenario = request.topic or DEFAULT_SCENARIO

        async with self._session_factory() as session:
            practice = ConversationPractice(
                user_id=user_id,
                transcript={
                    "languageId": language.id,
                    "level": request.level.value,
                    "scenario": scenario,
                    "content": payload,
                    "fallback": fallback,
                },
            )
            session.add(practice)
            await session.commit()
            practice_id = practice.id

        record_generation(kind.value, "fallback" if fallback else "generated")
        return ConversationOutcome(
            conversation_id=practice_id,
            language_id=language.id,
            level=request.level,
            scenario=scenario,
            content=payload,
            fallback=fallback,
        )

    async def reply(self, request: GenerationRequest, user_id: int) -> ReplyOutcome:
        kind = GenerationKind.CONVERSATION_REPLY
        if not (request.message or "").strip():
            raise self._fail(kind, GenerationErrorCode.INVALID_REQUEST, "message is required")
        language = await self._load_language(kind, request.language_id)
        bundle = build_prompt(request, language, config=self._config)
        raw = await self._complete(kind, bundle)
        parsed = self._require_parsed(kind, raw)
        response_text = parsed.content.response

        try:
            async with self._session_factory() as session:
                session.add(
                    ConversationExchange(
                        user_id=user_id,
                        language_id=language.id,
                        user_message=request.message,
                        ai_response=response_text,
                    )
                )
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Could not store conversation exchange for user %s", user_id)

        record_generation(kind.value, "generated")
        return ReplyOutcome(response=response_text)

    # ------------------------------------------------------------------
    # Pronunciation feedback
    # ------------------------------------------------------------------

    async def pronunciation_feedback(
        self, request: GenerationRequest, user_id: int
    ) -> FeedbackOutcome:
        kind = GenerationKind.PRONUNCIATION_FEEDBACK
        if not (request.target_text or "").strip():
            raise self._fail(kind, GenerationErrorCode.INVALID_REQUEST, "targetText is required")
        language = await self._load_language(kind, request.language_id)
        bundle = build_prompt(request, language, config=self._config)

        raw: Optional[str]
        try:
            raw = await self._invoke(kind, bundle)
        except LlmInvocationError as exc:
            logger.error("Pronunciation LLM call failed, using fallback: %s", exc)
            raw = None

        result = parse_response(kind, raw)
        fallback = isinstance(result, ParseFailure)
        feedback: PronunciationFeedback
        if isinstance(result, ParseFailure):
            logger.warning(
                "Pronunciation output unusable (%s: %s); using fallback feedback",
                result.reason.value,
                result.detail,
            )
            feedback = synthesize_fallback(request, raw, config=self._config)
        else:
            feedback = result.content
        feedback = clamp_feedback(feedback)
        payload = feedback.to_payload()

        async with self._session_factory() as session:
            record = PronunciationFeedbackRecord(
                user_id=user_id,
                sentence=request.target_text,
                accuracy=feedback.accuracy,
                feedback=payload,
                is_fallback=fallback,
            )
            session.add(record)
            await session.commit()
            record_id = record.id

        record_generation(kind.value, "fallback" if fallback else "generated")
        return FeedbackOutcome(record_id=record_id, feedback=payload, fallback=fallback)


__all__ = ["GenerationOrchestrator"]
