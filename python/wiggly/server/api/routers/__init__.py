"""API router module."""

from .ai_chat import create_ai_chat_router
from .system import create_system_router

__all__ = [
    "create_ai_chat_router",
    "create_system_router",
]
