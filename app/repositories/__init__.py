"""
Repository layer for data access operations.
"""

from app.repositories.base import BaseRepository
from app.repositories.user import UserRepository
from app.repositories.property import PropertyRepository, publicly_visible
from app.repositories.agent import AgentRepository
from app.repositories.message import MessageRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "publicly_visible",
    "AgentRepository",
    "MessageRepository",
]
