"""
Moderation service for the admin approval workflow of property listings.
"""

from typing import Dict, Any, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.models.property import Property, ApprovalStatus
from app.models.user import User, UserRole
from app.schemas.property import PropertyFilters
from app.database import utcnow
from app.utils.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ModerationService:
    """
    Moves listings through pending, approved and rejected.
    Approval publishes a listing, rejection unpublishes it.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def _transition(self, property_id: uuid.UUID, target: ApprovalStatus) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise NotFoundError("Property", str(property_id))

        if not property_obj.approval_status.can_transition_to(target):
            logger.warning(
                f"Refused transition of property {property_id} "
                f"from {property_obj.approval_status.value} to {target.value}"
            )
            raise InvalidStateTransitionError("Property", target.value)

        return property_obj

    async def approve(self, property_id: uuid.UUID, admin: User) -> Property:
        """
        Approve and publish a listing.

        Raises:
            NotFoundError: If the property doesn't exist
            InvalidStateTransitionError: If it is already approved
        """
        property_obj = await self._transition(property_id, ApprovalStatus.APPROVED)

        property_obj.approval_status = ApprovalStatus.APPROVED
        property_obj.approved_by_id = admin.id
        property_obj.approved_at = utcnow()
        property_obj.rejection_reason = None
        property_obj.is_published = True

        property_obj = await self.property_repo.save(property_obj)
        logger.info(f"Property {property_id} approved by admin {admin.id}")
        return property_obj

    async def reject(self, property_id: uuid.UUID, admin: User, reason: str) -> Property:
        """
        Reject and unpublish a listing.

        Raises:
            ValidationError: If no reason is given
            NotFoundError: If the property doesn't exist
            InvalidStateTransitionError: If it is already rejected
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError(
                "Rejection reason is required",
                field_errors=[{"field": "reason", "message": "Rejection reason is required"}]
            )

        property_obj = await self._transition(property_id, ApprovalStatus.REJECTED)

        property_obj.approval_status = ApprovalStatus.REJECTED
        property_obj.approved_by_id = admin.id
        property_obj.approved_at = utcnow()
        property_obj.rejection_reason = reason
        property_obj.is_published = False

        property_obj = await self.property_repo.save(property_obj)
        logger.info(f"Property {property_id} rejected by admin {admin.id}: {reason}")
        return property_obj

    async def list_pending(self, page: int = 1, limit: int = 10) -> Tuple[List[Property], int]:
        filters = PropertyFilters(approval_status=ApprovalStatus.PENDING)
        return await self.property_repo.search_properties(
            filters, page=page, limit=limit, sort="newest", public_only=False
        )

    async def get_statistics(self) -> Dict[str, Any]:
        """Listing counts per approval status plus user and agent totals."""
        stats = await self.property_repo.get_property_statistics()
        stats["total_users"] = await self.user_repo.count()
        stats["total_agents"] = await self.user_repo.count(User.role == UserRole.AGENT)
        return stats
