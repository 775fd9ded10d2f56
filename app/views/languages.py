"""Pydantic schemas for the language catalogue."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LanguageView(BaseModel):
    id: str
    name: str
    code: str

    model_config = ConfigDict(from_attributes=True)


class LanguageListResponse(BaseModel):
    success: bool = True
    data: list[LanguageView]


__all__ = ["LanguageView", "LanguageListResponse"]
