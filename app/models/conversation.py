"""Audit records for conversation practice."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.models.base import Base, JsonType, new_id


class ConversationPractice(Base):
    """A generated conversation scenario, stored per user and timestamp."""

    __tablename__ = "conversation_practices"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    transcript = Column(JsonType, nullable=False)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )


class ConversationExchange(Base):
    """One learner message and the assistant reply."""

    __tablename__ = "conversation_exchanges"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    language_id = Column(
        ForeignKey("languages.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_message = Column(Text, nullable=False)
    ai_response = Column(Text, nullable=False)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["ConversationPractice", "ConversationExchange"]
