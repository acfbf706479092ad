"""Session lifecycle management."""

from .session_manager import SessionManager

__all__ = ["SessionManager"]
