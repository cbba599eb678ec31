"""
Database models for the Real Estate Marketplace API.
Includes users, agent profiles with reviews, properties with images, and messages.
"""

from app.models.user import User, UserRole, user_favorites
from app.models.agent import Agent, AgentReview, ResponseTime, calculate_rating
from app.models.property import (
    Property,
    PropertyType,
    PropertyStatus,
    InsertedBy,
    ApprovalStatus,
)
from app.models.image import PropertyImage
from app.models.message import (
    Message,
    MessageType,
    MessagePriority,
    MessageStatus,
    MessageSource,
)

__all__ = [
    "User",
    "UserRole",
    "user_favorites",
    "Agent",
    "AgentReview",
    "ResponseTime",
    "calculate_rating",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "InsertedBy",
    "ApprovalStatus",
    "PropertyImage",
    "Message",
    "MessageType",
    "MessagePriority",
    "MessageStatus",
    "MessageSource",
]
