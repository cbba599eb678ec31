"""
User administration service.
Handles listing, role and status changes, and account deletion.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.user import UserRepository
from app.repositories.agent import AgentRepository
from app.models.user import User, UserRole
from app.models.agent import Agent
from app.schemas.user import UserUpdate
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    NotFoundError,
    OwnershipError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class UserService:
    """
    User administration for admins, plus self-service reads and updates.
    An admin can never change their own role or delete themselves.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.agent_repo = AgentRepository(db_session)

    async def _get(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[User], int]:
        return await self.user_repo.list_users(role=role, is_active=is_active, sort=sort, page=page, limit=limit)

    async def get_statistics(self) -> Dict[str, Any]:
        return await self.user_repo.get_user_statistics()

    async def get_user(self, user_id: uuid.UUID, current_user: User) -> User:
        if not current_user.can_manage(user_id):
            raise OwnershipError("user")
        return await self._get(user_id)

    async def update_user(self, user_id: uuid.UUID, data: UserUpdate, current_user: User) -> User:
        """
        Update a user as that user or an admin.

        Raises:
            OwnershipError: If the actor is neither the user nor an admin
            ConflictError: If the email or mobile belongs to another account
        """
        try:
            if not current_user.can_manage(user_id):
                raise OwnershipError("user")
            user = await self._get(user_id)

            changes = data.model_dump(exclude_unset=True, exclude_none=True)
            if not current_user.is_admin:
                changes.pop("is_active", None)

            if changes.get("email") or changes.get("mobile"):
                existing = await self.user_repo.find_conflicting(
                    email=changes.get("email"),
                    mobile=changes.get("mobile"),
                    exclude_user_id=user.id
                )
                if existing:
                    raise ConflictError("Email or mobile number is already in use")

            for field, value in changes.items():
                setattr(user, field, value)

            user = await self.user_repo.save(user)
            logger.info(f"User {user_id} updated by {current_user.id}")
            return user

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {e}")
            raise

    async def update_role(self, user_id: uuid.UUID, role: UserRole, admin: User) -> User:
        """
        Change a user's role.

        Moving a user to the agent role creates an unverified agent profile
        unless one already exists.

        Raises:
            BadRequestError: If the admin targets their own account
            NotFoundError: If the user doesn't exist
        """
        if user_id == admin.id:
            raise BadRequestError("Cannot change your own role")

        user = await self._get(user_id)
        user.role = role

        if role == UserRole.AGENT and not await self.agent_repo.get_by_user_id(user_id):
            self.db.add(Agent(user_id=user_id, is_verified=False, is_active=True))
            logger.info(f"Agent profile created for user {user_id} on role change")

        user = await self.user_repo.save(user)
        logger.info(f"User role updated by admin {admin.id}: {user_id} -> {role.value}")
        return user

    async def update_status(self, user_id: uuid.UUID, is_active: bool, admin: User) -> User:
        if user_id == admin.id and not is_active:
            raise BadRequestError("Cannot deactivate your own account")

        user = await self._get(user_id)
        user.is_active = is_active
        user = await self.user_repo.save(user)

        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'} by admin {admin.id}")
        return user

    async def delete_user(self, user_id: uuid.UUID, admin: User) -> None:
        """
        Delete an account with its agent profile and favorites.

        Raises:
            BadRequestError: If the admin targets their own account
            NotFoundError: If the user doesn't exist
        """
        if user_id == admin.id:
            raise BadRequestError("Cannot delete your own account")

        user = await self._get(user_id)
        try:
            agent = await self.agent_repo.get_by_user_id(user_id)
            if agent:
                await self.db.delete(agent)
            await self.user_repo.clear_favorites(user_id)
            await self.db.delete(user)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise

        logger.info(f"User {user_id} deleted by admin {admin.id}")
