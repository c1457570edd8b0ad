"""Application services."""
from .session_service import SessionNotFoundError, SessionService

__all__ = ["SessionNotFoundError", "SessionService"]
