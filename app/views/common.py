"""Common response schemas."""

from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every failed request: ``{success: false, message[, code]}``."""

    success: bool = False
    message: str
    code: Optional[str] = None
