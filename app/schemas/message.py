"""
Pydantic schemas for contact-form messages, public inquiries and admin triage.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
import uuid
from app.models.message import MessageType, MessagePriority, MessageStatus


def _clean(v):
    return v.strip() if isinstance(v, str) else v


class ContactCreate(BaseModel):
    """Contact-form submission."""

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    subject: str = Field(..., min_length=5, max_length=100)
    message: str = Field(..., min_length=10, max_length=1000)
    type: MessageType = MessageType.GENERAL
    property_id: Optional[uuid.UUID] = None
    agent_id: Optional[uuid.UUID] = None

    @field_validator("name", "subject", "message", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _clean(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class InquiryCreate(BaseModel):
    """Public inquiry submitted without the contact form."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "subject", "message", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _clean(v)


class MessageUpdate(BaseModel):
    """Admin triage update."""

    status: Optional[MessageStatus] = None
    priority: Optional[MessagePriority] = None
    type: Optional[MessageType] = None
    assigned_to: Optional[uuid.UUID] = None


class ReplyRequest(BaseModel):
    message: str = Field(..., min_length=10, max_length=1000)

    @field_validator("message", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _clean(v)
