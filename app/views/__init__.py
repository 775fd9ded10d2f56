"""Pydantic schemas used as views in the MVC architecture."""

from .ai_lessons import (
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
from .auth import AuthUser, LoginRequest, RegisterRequest, TokenResponse
from .common import ErrorResponse
from .languages import LanguageListResponse, LanguageView
from .progress import (
    LanguageProgressResponse,
    LessonProgressItem,
    LessonProgressState,
    LessonSummary,
    ProgressUpdateResponse,
    UpdateProgressRequest,
)

__all__ = [
    "AuthUser",
    "ConversationMessageRequest",
    "ConversationPromptRequest",
    "ConversationReplyData",
    "ConversationReplyResponse",
    "ConversationResponse",
    "ConversationView",
    "ErrorResponse",
    "GenerateLessonRequest",
    "GenerateQuizRequest",
    "LanguageListResponse",
    "LanguageProgressResponse",
    "LanguageView",
    "LessonDetailResponse",
    "LessonProgressItem",
    "LessonProgressState",
    "LessonResponse",
    "LessonSummary",
    "LoginRequest",
    "ProgressUpdateResponse",
    "PronunciationFeedbackRequest",
    "PronunciationFeedbackResponse",
    "QuizResponse",
    "QuizView",
    "RegisterRequest",
    "TokenResponse",
    "UpdateProgressRequest",
    "strip_data_url",
]
