"""Service layer helpers for external integrations."""

from .aws import create_boto3_client
from .llm_client import BedrockLlmClient, LlmInvocationError, TextCompletionClient
from .response_contract import (
    ConversationContent,
    ConversationReply,
    LessonContent,
    PronunciationFeedback,
    QuizContent,
    clamp_feedback,
)

__all__ = [
    "create_boto3_client",
    "BedrockLlmClient",
    "LlmInvocationError",
    "TextCompletionClient",
    "LessonContent",
    "QuizContent",
    "ConversationContent",
    "ConversationReply",
    "PronunciationFeedback",
    "clamp_feedback",
]
