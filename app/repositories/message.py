"""
Message repository for the admin inbox and message statistics.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, or_, desc, asc
from app.repositories.base import BaseRepository
from app.models.message import (
    Message,
    MessageType,
    MessagePriority,
    MessageStatus,
    MessageSource,
    PRIORITY_RANK,
)
from app.database import utcnow
from datetime import timedelta
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

_priority_rank = case(
    {priority: rank for priority, rank in PRIORITY_RANK.items()},
    value=Message.priority,
    else_=0
)

MESSAGE_SORTS = {
    "newest": (desc(Message.created_at),),
    "oldest": (asc(Message.created_at),),
    "priority": (desc(_priority_rank), desc(Message.created_at)),
    "status": (asc(Message.status), desc(Message.created_at)),
}


class MessageRepository(BaseRepository[Message]):
    """Repository for contact messages, inquiries and replies."""

    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    async def list_messages(
        self,
        status: Optional[MessageStatus] = None,
        priority: Optional[MessagePriority] = None,
        message_type: Optional[MessageType] = None,
        source: Optional[MessageSource] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Message], int]:
        """
        List messages for admin triage.

        Returns:
            Tuple of (messages on the page, total count)
        """
        query = select(Message)
        if status is not None:
            query = query.where(Message.status == status)
        if priority is not None:
            query = query.where(Message.priority == priority)
        if message_type is not None:
            query = query.where(Message.message_type == message_type)
        if source is not None:
            query = query.where(Message.source == source)

        query = query.order_by(*MESSAGE_SORTS.get(sort, MESSAGE_SORTS["newest"]))
        return await self.paginate(query, page, limit)

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        email: Optional[str],
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Message], int]:
        """Messages the user sent or that were addressed to their email."""
        conditions = [Message.sender_id == user_id]
        if email:
            conditions.append(Message.email == email)

        query = select(Message).where(or_(*conditions)).order_by(desc(Message.created_at))
        return await self.paginate(query, page, limit)

    async def _grouped_counts(self, column, enum_cls, scope) -> Dict[str, int]:
        query = select(column, func.count(Message.id)).group_by(column)
        if scope:
            query = query.where(*scope)
        counts = {member.value: 0 for member in enum_cls}
        for value, count in (await self.db.execute(query)).all():
            counts[value.value] = count
        return counts

    async def get_message_statistics(self, source: Optional[MessageSource] = None) -> Dict[str, Any]:
        """
        Get inbox statistics for the admin dashboard.

        Args:
            source: Restrict to messages from one origin

        Returns:
            Dictionary with totals, per-status, per-type and per-priority counts
        """
        try:
            scope = [Message.source == source] if source is not None else []

            by_status = await self._grouped_counts(Message.status, MessageStatus, scope)
            by_type = await self._grouped_counts(Message.message_type, MessageType, scope)
            by_priority = await self._grouped_counts(Message.priority, MessagePriority, scope)

            since = utcnow() - timedelta(days=30)

            return {
                "total": sum(by_status.values()),
                "new": by_status[MessageStatus.NEW.value],
                "read": by_status[MessageStatus.READ.value],
                "replied": by_status[MessageStatus.REPLIED.value],
                "closed": by_status[MessageStatus.CLOSED.value],
                "last_30_days": await self.count(Message.created_at >= since, *scope),
                "unread": await self.count(Message.is_read == False, *scope),
                "by_type": by_type,
                "by_priority": by_priority,
            }
        except Exception as e:
            logger.error(f"Failed to get message statistics: {e}")
            raise
