"""SQLAlchemy models for the LangoSpark backend."""

from .base import Base
from .conversation import ConversationExchange, ConversationPractice  # noqa: F401
from .language import Language  # noqa: F401
from .lesson import Lesson, ProficiencyLevel, Quiz  # noqa: F401
from .log import RequestLog  # noqa: F401
from .progress import LearningProgress  # noqa: F401
from .pronunciation import PronunciationFeedbackRecord  # noqa: F401
from .user import User  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Language",
    "Lesson",
    "Quiz",
    "ProficiencyLevel",
    "LearningProgress",
    "ConversationPractice",
    "ConversationExchange",
    "PronunciationFeedbackRecord",
    "RequestLog",
]
