"""
Message model for contact-form submissions, public inquiries and admin replies.
"""

from sqlalchemy import String, Text, Boolean, DateTime, Uuid, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from datetime import datetime
from typing import Optional, TYPE_CHECKING
import enum
import uuid

if TYPE_CHECKING:
    from app.models.user import User


class MessageType(str, enum.Enum):
    GENERAL = "general"
    PROPERTY_INQUIRY = "property_inquiry"
    AGENT_CONTACT = "agent_contact"
    SUPPORT = "support"


class MessagePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MessageStatus(str, enum.Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    CLOSED = "closed"


class MessageSource(str, enum.Enum):
    """Where a message originated."""
    CONTACT_FORM = "contact_form"
    INQUIRY = "inquiry"
    ADMIN_REPLY = "admin_reply"


# Ordering weight used when sorting by priority
PRIORITY_RANK = {
    MessagePriority.URGENT: 4,
    MessagePriority.HIGH: 3,
    MessagePriority.MEDIUM: 2,
    MessagePriority.LOW: 1,
}


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Message(Base):
    """
    Inbound or outbound message.
    Triage metadata (source, ip, user agent, reply reference) is kept in
    dedicated columns and serialized as one metadata object.
    """

    __tablename__ = "messages"

    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    recipient_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    message_type: Mapped[MessageType] = mapped_column(
        SQLEnum(MessageType, values_callable=_enum_values),
        nullable=False,
        default=MessageType.GENERAL,
        index=True
    )
    priority: Mapped[MessagePriority] = mapped_column(
        SQLEnum(MessagePriority, values_callable=_enum_values),
        nullable=False,
        default=MessagePriority.MEDIUM,
        index=True
    )
    status: Mapped[MessageStatus] = mapped_column(
        SQLEnum(MessageStatus, values_callable=_enum_values),
        nullable=False,
        default=MessageStatus.NEW,
        index=True
    )

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True
    )

    # Admin response recorded on the original message
    response_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Metadata
    source: Mapped[MessageSource] = mapped_column(
        SQLEnum(MessageSource, values_callable=_enum_values),
        nullable=False,
        default=MessageSource.INQUIRY,
        index=True
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    reply_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True
    )

    sender: Mapped[Optional["User"]] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    recipient: Mapped[Optional["User"]] = relationship("User", foreign_keys=[recipient_id], lazy="selectin")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, subject={self.subject[:30]}, status={self.status})>"

    @property
    def metadata_dict(self) -> dict:
        return {
            "source": self.source.value if self.source else None,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "reply_to": str(self.reply_to_id) if self.reply_to_id else None,
        }

    def to_dict(self) -> dict:
        result = {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "subject": self.subject,
            "message": self.body,
            "type": self.message_type.value,
            "priority": self.priority.value,
            "status": self.status.value,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "sender": self.sender.to_summary() if self.sender else None,
            "recipient": self.recipient.to_summary() if self.recipient else None,
            "assigned_to": str(self.assigned_to_id) if self.assigned_to_id else None,
            "property_id": str(self.property_id) if self.property_id else None,
            "agent_id": str(self.agent_id) if self.agent_id else None,
            "metadata": self.metadata_dict,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if self.response_message:
            result["response"] = {
                "message": self.response_message,
                "responded_by": str(self.responded_by_id) if self.responded_by_id else None,
                "responded_at": self.responded_at.isoformat() if self.responded_at else None,
            }

        return result
