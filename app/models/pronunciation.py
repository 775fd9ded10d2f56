"""Audit record for pronunciation feedback."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func

from app.models.base import Base, JsonType, new_id


class PronunciationFeedbackRecord(Base):
    __tablename__ = "pronunciation_feedback"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sentence = Column(Text, nullable=False)
    accuracy = Column(Float, nullable=False)
    feedback = Column(JsonType, nullable=False)
    is_fallback = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["PronunciationFeedbackRecord"]
