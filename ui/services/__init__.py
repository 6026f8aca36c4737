"""UI services module."""
from .session_manager import SessionManager

__all__ = ["SessionManager"]
