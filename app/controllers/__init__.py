"""FastAPI routers acting as controllers in the MVC architecture."""

from . import ai_lessons, auth, languages, progress

__all__ = ["ai_lessons", "auth", "languages", "progress"]
