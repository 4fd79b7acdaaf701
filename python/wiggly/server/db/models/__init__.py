"""
Wiggly Server - Database Models

All models are imported here so they are registered with SQLAlchemy.
"""

from .base import Base
from .trade import Trade

__all__ = [
    "Base",
    "Trade",
]
