"""AI lesson controller: lessons, quizzes, conversations and pronunciation."""

from __future__ import annotations

import base64
import binascii
import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.config.settings import settings
from app.controllers.dependencies import CurrentUserDep, OrchestratorDep, SessionDep
from app.models import Lesson, Quiz
from app.pipelines.generation import (
    GenerationKind,
    GenerationRequest,
    QuizOutcome,
    lesson_payload,
)
from app.views import (
    ConversationMessageRequest,
    ConversationPromptRequest,
    ConversationReplyData,
    ConversationReplyResponse,
    ConversationResponse,
    ConversationView,
    GenerateLessonRequest,
    GenerateQuizRequest,
    LessonDetailResponse,
    LessonResponse,
    PronunciationFeedbackRequest,
    PronunciationFeedbackResponse,
    QuizResponse,
    QuizView,
    strip_data_url,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai-lessons", tags=["ai-lessons"])


def _quiz_view(outcome: QuizOutcome) -> QuizView:
    return QuizView(
        id=outcome.quiz_id,
        lesson_id=outcome.lesson_id,
        questions=outcome.questions,
        created=outcome.created,
    )


def _decode_audio(audio_data: str) -> bytes:
    """Validate the base64 audio payload and return the raw bytes."""

    payload = strip_data_url(audio_data)
    if len(payload) > settings.generation.max_audio_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Audio recording is too large",
        )
    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="audioData must be a valid base64-encoded string",
        ) from exc
    if not decoded:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="audioData cannot be empty",
        )
    return decoded


@router.post("/generate-lesson", response_model=LessonResponse)
async def generate_lesson(
    payload: GenerateLessonRequest,
    current_user: CurrentUserDep,
    orchestrator: OrchestratorDep,
) -> LessonResponse:
    """Generate a lesson, its initial progress row and a companion quiz."""

    outcome = await orchestrator.generate(
        GenerationRequest(
            kind=GenerationKind.LESSON,
            language_id=payload.language_id,
            level=payload.level,
            topic=payload.topic or None,
        ),
        current_user.id,
    )
    warnings = [f"Quiz generation failed: {outcome.quiz_error}"] if outcome.degraded else []
    return LessonResponse(
        lesson=outcome.lesson,
        progress=outcome.progress,
        quiz=_quiz_view(outcome.quiz) if outcome.quiz else None,
        degraded=outcome.degraded,
        warnings=warnings,
    )


@router.post("/generate-quiz", response_model=QuizResponse)
async def generate_quiz(
    payload: GenerateQuizRequest,
    current_user: CurrentUserDep,
    orchestrator: OrchestratorDep,
) -> QuizResponse:
    """Return the lesson's quiz, generating it on first request."""

    outcome = await orchestrator.generate(
        GenerationRequest(
            kind=GenerationKind.QUIZ,
            lesson_id=payload.lesson_id,
            question_count=payload.number_of_questions,
        ),
        current_user.id,
    )
    return QuizResponse(quiz=_quiz_view(outcome))


@router.post("/conversation-prompt", response_model=ConversationResponse)
async def conversation_prompt(
    payload: ConversationPromptRequest,
    current_user: CurrentUserDep,
    orchestrator: OrchestratorDep,
) -> ConversationResponse:
    outcome = await orchestrator.generate(
        GenerationRequest(
            kind=GenerationKind.CONVERSATION_PROMPT,
            language_id=payload.language_id,
            level=payload.level,
            topic=payload.scenario or None,
        ),
        current_user.id,
    )
    return ConversationResponse(
        conversation=ConversationView(
            id=outcome.conversation_id,
            language_id=outcome.language_id,
            level=outcome.level,
            scenario=outcome.scenario,
            content=outcome.content,
            fallback=outcome.fallback,
        )
    )


@router.post("/conversation-response", response_model=ConversationReplyResponse)
async def conversation_response(
    payload: ConversationMessageRequest,
    current_user: CurrentUserDep,
    orchestrator: OrchestratorDep,
) -> ConversationReplyResponse:
    outcome = await orchestrator.generate(
        GenerationRequest(
            kind=GenerationKind.CONVERSATION_REPLY,
            language_id=payload.language_id,
            message=payload.message,
        ),
        current_user.id,
    )
    return ConversationReplyResponse(data=ConversationReplyData(response=outcome.response))


@router.post("/pronunciation-feedback", response_model=PronunciationFeedbackResponse)
async def pronunciation_feedback(
    payload: PronunciationFeedbackRequest,
    current_user: CurrentUserDep,
    orchestrator: OrchestratorDep,
) -> PronunciationFeedbackResponse:
    """Analyse a recorded phrase; always answers with feedback once decoded."""

    audio_bytes = _decode_audio(payload.audio_data)
    logger.info(
        "Pronunciation feedback requested user=%s language=%s bytes=%s",
        current_user.id,
        payload.language_id,
        len(audio_bytes),
    )
    outcome = await orchestrator.generate(
        GenerationRequest(
            kind=GenerationKind.PRONUNCIATION_FEEDBACK,
            language_id=payload.language_id,
            level=payload.level,
            target_text=payload.target_text,
            audio_payload=audio_bytes,
        ),
        current_user.id,
    )
    return PronunciationFeedbackResponse(
        feedback=outcome.feedback,
        record_id=outcome.record_id,
        fallback=outcome.fallback,
    )


@router.get("/lesson/{lesson_id}", response_model=LessonDetailResponse)
async def get_lesson(
    lesson_id: str,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> LessonDetailResponse:
    """Fetch a stored lesson together with its quiz, if one exists."""

    lesson = await session.get(Lesson, lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")

    result = await session.execute(select(Quiz).where(Quiz.lesson_id == lesson.id))
    quiz = result.scalar_one_or_none()
    quiz_view = None
    if quiz is not None:
        quiz_view = QuizView(
            id=quiz.id,
            lesson_id=quiz.lesson_id,
            questions=quiz.questions,
            created=False,
        )
    return LessonDetailResponse(lesson=lesson_payload(lesson), quiz=quiz_view)
