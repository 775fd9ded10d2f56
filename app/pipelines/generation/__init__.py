"""AI content generation pipeline package.

Modules are organised by the order in which a generation request executes:

1. `prompts` – assemble the system/user prompts with the JSON contract.
2. `parsing` – extract JSON from raw model text and validate its shape.
3. `fallback` – deterministic placeholders for feedback and conversations.
4. `persistence` – row-to-payload helpers for stored content.
5. `orchestrator` – run the stages above and own the transactions.

Controllers import from here so contributors can jump straight to the
relevant stage without wading through a single monolithic file.
"""

from .fallback import synthesize_fallback
from .orchestrator import GenerationOrchestrator
from .parsing import parse_response
from .persistence import lesson_payload, progress_payload
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

__all__ = [
    "GenerationOrchestrator",
    "build_prompt",
    "parse_response",
    "synthesize_fallback",
    "lesson_payload",
    "progress_payload",
    "ConversationOutcome",
    "FeedbackOutcome",
    "GenerationError",
    "GenerationErrorCode",
    "GenerationKind",
    "GenerationRequest",
    "LanguageInfo",
    "LessonOutcome",
    "ParsedContent",
    "ParseFailure",
    "ParseFailureReason",
    "PromptBundle",
    "QuizOutcome",
    "ReplyOutcome",
]
