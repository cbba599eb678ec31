"""
Contact service for contact-form messages, public inquiries and admin replies.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.message import MessageRepository
from app.repositories.user import UserRepository
from app.models.message import (
    Message,
    MessageType,
    MessagePriority,
    MessageStatus,
    MessageSource,
)
from app.models.user import User
from app.schemas.message import ContactCreate, InquiryCreate, MessageUpdate
from app.services.mail import MailService
from app.database import utcnow
from app.utils.exceptions import DependencyError, NotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)

RESOURCE_NAMES = {
    MessageSource.CONTACT_FORM: "Contact message",
    MessageSource.INQUIRY: "Message",
}


class ContactService:
    """
    Contact service for inbound messages and admin triage.
    Admin operations are scoped to one message source.
    """

    def __init__(self, db_session: AsyncSession, mail: Optional[MailService] = None):
        self.db = db_session
        self.message_repo = MessageRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.mail = mail

    async def create_contact(
        self,
        data: ContactCreate,
        sender: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Message:
        """
        Record a contact-form submission addressed to an admin.

        Raises:
            DependencyError: If there is no active admin to receive it
        """
        admin = await self.user_repo.get_active_admin()
        if not admin:
            logger.error("Contact form submitted but no active admin exists")
            raise DependencyError("No admin user found to receive contact messages")

        message = Message(
            sender_id=sender.id if sender else None,
            recipient_id=admin.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            subject=data.subject,
            body=data.message,
            message_type=data.type,
            property_id=data.property_id,
            agent_id=data.agent_id,
            source=MessageSource.CONTACT_FORM,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500] or None,
        )
        message = await self.message_repo.save(message)

        logger.info(f"Contact message {message.id} received from {data.email}")
        return message

    async def create_inquiry(
        self,
        data: InquiryCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Message:
        """Record a public inquiry; no recipient is required."""
        message = Message(
            name=data.name,
            email=data.email,
            phone=data.phone,
            subject=data.subject,
            body=data.message,
            source=MessageSource.INQUIRY,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500] or None,
        )
        message = await self.message_repo.save(message)

        logger.info(f"Inquiry {message.id} received from {data.email}")
        return message

    async def get_user_messages(self, current_user: User, page: int = 1, limit: int = 10) -> Tuple[List[Message], int]:
        return await self.message_repo.list_for_user(current_user.id, current_user.email, page=page, limit=limit)

    async def list_messages(
        self,
        source: MessageSource,
        status: Optional[MessageStatus] = None,
        priority: Optional[MessagePriority] = None,
        message_type: Optional[MessageType] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Message], int]:
        return await self.message_repo.list_messages(
            status=status,
            priority=priority,
            message_type=message_type,
            source=source,
            sort=sort,
            page=page,
            limit=limit,
        )

    async def get_message(self, message_id: uuid.UUID, source: MessageSource) -> Message:
        message = await self.message_repo.get_by_id(message_id)
        if not message or message.source != source:
            raise NotFoundError(RESOURCE_NAMES.get(source, "Message"), str(message_id))
        return message

    async def update_message(
        self,
        message_id: uuid.UUID,
        data: MessageUpdate,
        source: MessageSource = MessageSource.CONTACT_FORM
    ) -> Message:
        """Admin triage: status, priority, type and assignee."""
        message = await self.get_message(message_id, source)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "type" in changes:
            message.message_type = changes.pop("type")
        if "assigned_to" in changes:
            message.assigned_to_id = changes.pop("assigned_to")
        for field, value in changes.items():
            setattr(message, field, value)

        message = await self.message_repo.save(message)
        logger.info(f"Message {message_id} updated: {list(data.model_fields_set)}")
        return message

    async def delete_message(self, message_id: uuid.UUID, source: MessageSource) -> None:
        await self.get_message(message_id, source)
        await self.message_repo.delete(message_id)
        logger.info(f"Message {message_id} deleted")

    async def mark_as_read(self, message_id: uuid.UUID, source: MessageSource = MessageSource.CONTACT_FORM) -> Message:
        """Mark a message read; every call stamps the current read time."""
        message = await self.get_message(message_id, source)

        message.is_read = True
        message.read_at = utcnow()
        message.status = MessageStatus.READ

        return await self.message_repo.save(message)

    async def reply(
        self,
        message_id: uuid.UUID,
        admin: User,
        text: str,
        source: MessageSource = MessageSource.CONTACT_FORM
    ) -> Message:
        """
        Reply to a message as an admin.

        The reply is stored as its own message pointing back at the original,
        the response is recorded on the original, and the reply is emailed.
        Email delivery is best-effort.

        Raises:
            NotFoundError: If the original message doesn't exist
        """
        original = await self.get_message(message_id, source)
        now = utcnow()

        reply = Message(
            sender_id=admin.id,
            name=admin.name,
            email=original.email,
            subject=f"Re: {original.subject}"[:200],
            body=text,
            message_type=MessageType.SUPPORT,
            status=MessageStatus.REPLIED,
            property_id=original.property_id,
            agent_id=original.agent_id,
            source=MessageSource.ADMIN_REPLY,
            reply_to_id=original.id,
        )
        self.db.add(reply)

        original.status = MessageStatus.REPLIED
        original.response_message = text
        original.responded_by_id = admin.id
        original.responded_at = now

        reply = await self.message_repo.save(reply)
        logger.info(f"Admin {admin.id} replied to message {message_id}")

        if self.mail:
            try:
                await self.mail.send(to=original.email, subject=reply.subject, body=text)
            except DependencyError as e:
                logger.warning(f"Reply {reply.id} stored but not emailed: {e.detail}")

        return reply

    async def get_statistics(self, source: Optional[MessageSource] = MessageSource.CONTACT_FORM) -> Dict[str, Any]:
        return await self.message_repo.get_message_statistics(source)
