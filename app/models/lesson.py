"""SQLAlchemy models for generated lessons and their quizzes."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base, JsonType, new_id


class ProficiencyLevel(str, Enum):
    """Learner proficiency levels accepted by the generation endpoints."""

    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    language_id = Column(
        ForeignKey("languages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level = Column(
        SqlEnum(ProficiencyLevel, name="proficiency_level"),
        nullable=False,
    )
    # Immutable once written; there is no edit path.
    content = Column(JsonType, nullable=False)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    language = relationship("Language", lazy="joined")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=new_id)
    # Unique so concurrent generations for one lesson store a single quiz.
    lesson_id = Column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    questions = Column(JsonType, nullable=False)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["Lesson", "Quiz", "ProficiencyLevel"]
