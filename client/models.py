"""Client-side view of the pronunciation feedback payload."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PhonemeResult(BaseModel):
    sound: str
    accuracy: float = Field(ge=0.0, le=1.0)
    feedback: str


class PronunciationResult(BaseModel):
    """Feedback as returned by ``/api/ai-lessons/pronunciation-feedback``."""

    accuracy: float = Field(ge=0.0, le=1.0)
    feedback: str
    suggestions: list[str] = Field(default_factory=list)
    phonemes: list[PhonemeResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    def render(self) -> str:
        """Format the feedback the way the practice screen shows it."""

        lines = [f"Accuracy: {round(self.accuracy * 100)}%", "", self.feedback]
        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            lines.extend(f"• {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)


__all__ = ["PhonemeResult", "PronunciationResult"]
