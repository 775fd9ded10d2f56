"""Prompt assembly for every generation kind (Stage 01 of the pipeline).

Each builder emits a system prompt and a user prompt. The user prompt ends
with an explicit JSON contract whose keys match the schemas in
``app.services.response_contract``. Learner-supplied fields (topic, scenario,
message, target phrase) are interpolated verbatim.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

from app.config.settings import GenerationConfig, settings

from .types import GenerationKind, GenerationRequest, LanguageInfo, PromptBundle

_JSON_ONLY_SYSTEM_PROMPT = (
    "You are an expert {language} teacher who writes structured course material. "
    "Respond with ONLY valid JSON in the exact format requested. "
    "Do not include any text before or after the JSON."
)

PRONUNCIATION_SYSTEM_PROMPT = (
    "You are an expert language pronunciation analyzer. You MUST respond with ONLY "
    "valid JSON in the exact format shown. Do not include any text before or after "
    "the JSON response. Keep your analysis concise and helpful."
)

_REPLY_SYSTEM_PROMPT = (
    "You are a friendly {language} language learning assistant. "
    "Answer in plain conversational text, never in JSON."
)

LESSON_CONTRACT = """{
    "vocabulary": [{"word": "", "translation": "", "example": ""}],
    "grammar": "",
    "examples": [""],
    "exercises": [""],
    "culturalNotes": ""
}"""

QUIZ_CONTRACT = """[
    {
        "question": "",
        "options": ["", "", "", ""],
        "correctAnswer": 0,
        "explanation": ""
    }
]"""

CONVERSATION_CONTRACT = """{
    "context": "",
    "vocabulary": [{"word": "", "translation": ""}],
    "script": [{"targetLanguageText": "", "translation": ""}],
    "culturalNotes": ""
}"""

PRONUNCIATION_CONTRACT = """{
    "accuracy": 0.7,
    "feedback": "Clear overall feedback about the pronunciation...",
    "suggestions": [
        "First specific suggestion",
        "Second specific suggestion"
    ],
    "phonemes": [
        {
            "sound": "specific sound",
            "accuracy": 0.8,
            "feedback": "feedback for this sound"
        }
    ]
}"""


def _level(request: GenerationRequest) -> str:
    return request.level.value.lower()


def _lesson_prompt(
    request: GenerationRequest,
    language: LanguageInfo,
    config: GenerationConfig,
    lesson_content: Mapping[str, Any] | None,
) -> PromptBundle:
    about = f" about {request.topic}" if request.topic else ""
    user_prompt = (
        f"Generate a structured {_level(request)} level lesson for learning "
        f"{language.name} ({language.code}){about}.\n"
        "Include:\n"
        "1. Vocabulary section with 5-10 key words/phrases\n"
        "2. Grammar explanation\n"
        "3. Example sentences\n"
        "4. Practice exercises\n"
        "5. Cultural notes (if relevant)\n\n"
        "IMPORTANT: Format your response as a valid JSON object with these exact keys:\n"
        f"{LESSON_CONTRACT}"
    )
    return PromptBundle(
        system_prompt=_JSON_ONLY_SYSTEM_PROMPT.format(language=language.name),
        user_prompt=user_prompt,
        max_tokens=config.lesson_max_tokens,
    )


def _quiz_prompt(
    request: GenerationRequest,
    language: LanguageInfo,
    config: GenerationConfig,
    lesson_content: Mapping[str, Any] | None,
) -> PromptBundle:
    count = request.question_count or config.default_quiz_questions
    based_on = ""
    if lesson_content:
        based_on = " based on this content: " + json.dumps(
            lesson_content, ensure_ascii=False
        )
    user_prompt = (
        f"Generate {count} multiple-choice questions for a {_level(request)} level "
        f"{language.name} lesson{based_on}.\n"
        "Every question needs at least two options and correctAnswer must be the "
        "zero-based index of the right option.\n"
        "IMPORTANT: Format your response as a valid JSON array of objects with these "
        "exact keys:\n"
        f"{QUIZ_CONTRACT}"
    )
    return PromptBundle(
        system_prompt=_JSON_ONLY_SYSTEM_PROMPT.format(language=language.name),
        user_prompt=user_prompt,
        max_tokens=config.quiz_max_tokens,
    )


def _conversation_prompt(
    request: GenerationRequest,
    language: LanguageInfo,
    config: GenerationConfig,
    lesson_content: Mapping[str, Any] | None,
) -> PromptBundle:
    about = f" about {request.topic}" if request.topic else ""
    user_prompt = (
        f"Generate a realistic conversation scenario in {language.name} "
        f"({language.code}) for {_level(request)} level{about}.\n"
        "Each script line holds the sentence in the target language and its English "
        "translation.\n"
        "IMPORTANT: Format your response as a valid JSON object with these exact keys:\n"
        f"{CONVERSATION_CONTRACT}"
    )
    return PromptBundle(
        system_prompt=_JSON_ONLY_SYSTEM_PROMPT.format(language=language.name),
        user_prompt=user_prompt,
        max_tokens=config.conversation_max_tokens,
    )


def _reply_prompt(
    request: GenerationRequest,
    language: LanguageInfo,
    config: GenerationConfig,
    lesson_content: Mapping[str, Any] | None,
) -> PromptBundle:
    user_prompt = (
        f"You are a language learning assistant for {language.name}. Respond to this "
        f'message from a language learner: "{request.message or ""}"\n\n'
        "Your response should:\n"
        "1. Be helpful and encouraging\n"
        "2. Use simple language appropriate for their level\n"
        "3. Provide corrections if there are grammar mistakes\n"
        f"4. Include the correct {language.name} phrases when appropriate\n\n"
        "Keep your response conversational, friendly and under 150 words."
    )
    return PromptBundle(
        system_prompt=_REPLY_SYSTEM_PROMPT.format(language=language.name),
        user_prompt=user_prompt,
        max_tokens=config.reply_max_tokens,
    )


def _pronunciation_prompt(
    request: GenerationRequest,
    language: LanguageInfo,
    config: GenerationConfig,
    lesson_content: Mapping[str, Any] | None,
) -> PromptBundle:
    audio_note = ""
    if request.audio_payload is not None:
        audio_note = f"The recording is {len(request.audio_payload)} bytes of audio.\n"
    user_prompt = (
        f"Analyze this audio recording of a {_level(request)} level student saying "
        f'this {language.name} phrase: "{request.target_text or ""}"\n'
        f"{audio_note}\n"
        "RESPOND ONLY WITH VALID JSON in this exact format with no preamble or "
        "additional text:\n\n"
        f"{PRONUNCIATION_CONTRACT}\n\n"
        "Notes:\n"
        "- accuracy must be a number between 0.0 and 1.0\n"
        "- include 2-4 actionable suggestions\n"
        "- analyze key phonemes with clear feedback\n"
        "- be encouraging and constructive\n"
        "- focus on the most important improvements"
    )
    return PromptBundle(
        system_prompt=PRONUNCIATION_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        max_tokens=config.feedback_max_tokens,
    )


_BUILDERS: dict[
    GenerationKind,
    Callable[
        [GenerationRequest, LanguageInfo, GenerationConfig, Mapping[str, Any] | None],
        PromptBundle,
    ],
] = {
    GenerationKind.LESSON: _lesson_prompt,
    GenerationKind.QUIZ: _quiz_prompt,
    GenerationKind.CONVERSATION_PROMPT: _conversation_prompt,
    GenerationKind.CONVERSATION_REPLY: _reply_prompt,
    GenerationKind.PRONUNCIATION_FEEDBACK: _pronunciation_prompt,
}


def build_prompt(
    request: GenerationRequest,
    language: LanguageInfo,
    *,
    lesson_content: Mapping[str, Any] | None = None,
    config: GenerationConfig | None = None,
) -> PromptBundle:
    """Compose the system/user prompts for the request's generation kind."""

    return _BUILDERS[request.kind](
        request,
        language,
        config or settings.generation,
        lesson_content,
    )


__all__ = [
    "build_prompt",
    "PRONUNCIATION_SYSTEM_PROMPT",
    "LESSON_CONTRACT",
    "QUIZ_CONTRACT",
    "CONVERSATION_CONTRACT",
    "PRONUNCIATION_CONTRACT",
]
