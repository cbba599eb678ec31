"""
User repository for account lookup, favorites and admin queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, insert, func, or_
from app.repositories.base import BaseRepository
from app.models.user import User, UserRole, user_favorites
from app.models.property import Property
from app.database import utcnow
from datetime import timedelta
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

USER_SORTS = {
    "newest": (User.created_at.desc(),),
    "oldest": (User.created_at.asc(),),
    "name": (User.name.asc(), User.created_at.desc()),
}


class UserRepository(BaseRepository[User]):
    """Repository for user accounts."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address (case-insensitive).

        Args:
            email: User's email address

        Returns:
            User instance if found, None otherwise
        """
        if not email:
            return None
        query = select(User).where(User.email == email.strip().lower())
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_mobile(self, mobile: str) -> Optional[User]:
        if not mobile:
            return None
        query = select(User).where(User.mobile == mobile.strip())
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_conflicting(
        self,
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        exclude_user_id: Optional[uuid.UUID] = None
    ) -> Optional[User]:
        """
        Find another account already holding the given email or mobile.

        Args:
            email: Candidate email address
            mobile: Candidate mobile number
            exclude_user_id: Account being updated, ignored in the check
        """
        conditions = []
        if email:
            conditions.append(User.email == email.strip().lower())
        if mobile:
            conditions.append(User.mobile == mobile.strip())
        if not conditions:
            return None

        query = select(User).where(or_(*conditions))
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)

        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        """Get the user holding this reset-token hash, only while it is unexpired."""
        query = select(User).where(
            User.reset_password_token == token_hash,
            User.reset_password_expire > utcnow()
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_active_admin(self) -> Optional[User]:
        """Oldest active admin, used as the recipient of contact-form messages."""
        query = (
            select(User)
            .where(User.role == UserRole.ADMIN, User.is_active == True)
            .order_by(User.created_at.asc())
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[User], int]:
        """
        List users for the admin panel.

        Returns:
            Tuple of (users on the page, total count)
        """
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active == is_active)

        query = query.order_by(*USER_SORTS.get(sort, USER_SORTS["newest"]))
        return await self.paginate(query, page, limit)

    async def get_user_statistics(self) -> Dict[str, Any]:
        """
        Get user statistics for admin dashboard.

        Returns:
            Dictionary with totals and per-role counts
        """
        try:
            total_users = await self.count()
            active_users = await self.count(User.is_active == True)

            role_query = select(User.role, func.count(User.id)).group_by(User.role)
            role_result = await self.db.execute(role_query)
            users_by_role = {role.value: 0 for role in UserRole}
            for role, count in role_result.all():
                users_by_role[role.value] = count

            # Recent registrations (last 30 days)
            recent_users = await self.count(User.created_at >= utcnow() - timedelta(days=30))

            logger.debug("Generated user statistics")
            return {
                "total_users": total_users,
                "active_users": active_users,
                "inactive_users": total_users - active_users,
                "recent_users": recent_users,
                "users_by_role": users_by_role,
            }
        except Exception as e:
            logger.error(f"Failed to get user statistics: {e}")
            raise

    # Favorites

    async def is_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        query = select(func.count()).select_from(user_favorites).where(
            user_favorites.c.user_id == user_id,
            user_favorites.c.property_id == property_id
        )
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def add_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> None:
        try:
            await self.db.execute(
                insert(user_favorites).values(
                    user_id=user_id,
                    property_id=property_id,
                    created_at=utcnow()
                )
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to add favorite {property_id} for user {user_id}: {e}")
            raise

    async def remove_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """Remove a favorite; returns False when it was not present."""
        try:
            result = await self.db.execute(
                delete(user_favorites).where(
                    user_favorites.c.user_id == user_id,
                    user_favorites.c.property_id == property_id
                )
            )
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove favorite {property_id} for user {user_id}: {e}")
            raise

    async def list_favorites(self, user_id: uuid.UUID) -> List[Property]:
        """Favorite properties in the order they were added."""
        query = (
            select(Property)
            .join(user_favorites, user_favorites.c.property_id == Property.id)
            .where(user_favorites.c.user_id == user_id)
            .order_by(user_favorites.c.created_at.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def clear_favorites(self, user_id: uuid.UUID) -> None:
        await self.db.execute(delete(user_favorites).where(user_favorites.c.user_id == user_id))
