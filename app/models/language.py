"""SQLAlchemy model for the languages learners can study."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, String, func

from app.models.base import Base, new_id


class Language(Base):
    __tablename__ = "languages"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    code = Column(String(16), nullable=False, unique=True)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["Language"]
