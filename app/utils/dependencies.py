"""
FastAPI dependency injection utilities for authentication, services and database sessions.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.models.user import User, UserRole
from app.services.auth import AuthService
from app.services.property import PropertyService
from app.services.moderation import ModerationService
from app.services.agent import AgentService
from app.services.user import UserService
from app.services.contact import ContactService
from app.services.storage import StorageService
from app.services.mail import MailService
from app.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InsufficientPermissionsError
)
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_storage_service() -> StorageService:
    """Local upload storage; overridden with a temporary directory in tests."""
    return StorageService()


def get_mail_service() -> MailService:
    return MailService()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    mail: MailService = Depends(get_mail_service),
    storage: StorageService = Depends(get_storage_service)
) -> AuthService:
    return AuthService(db, mail=mail, storage=storage)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
) -> PropertyService:
    return PropertyService(db, storage=storage)


async def get_moderation_service(db: AsyncSession = Depends(get_db)) -> ModerationService:
    return ModerationService(db)


async def get_agent_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
) -> AgentService:
    return AgentService(db, storage=storage)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


async def get_contact_service(
    db: AsyncSession = Depends(get_db),
    mail: MailService = Depends(get_mail_service)
) -> ContactService:
    return ContactService(db, mail=mail)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token is provided, the token is invalid or
            expired, or the account is gone or deactivated
    """
    if not credentials:
        raise UnauthorizedError("Not authorized to access this route")

    return await auth_service.get_current_user(credentials.credentials)


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if a usable token is provided, otherwise None.
    Public endpoints use this to widen what the caller may see.
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException as e:
        logger.debug(f"Ignoring unusable token on public route: {e.detail}")
        return None


def authorize(*roles: UserRole):
    """
    Create a dependency that requires one of the given roles.

    Args:
        roles: Roles allowed through

    Returns:
        Dependency function resolving to the current user
    """
    async def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"User {current_user.id} with role {current_user.role.value} denied")
            raise InsufficientPermissionsError(
                f"access this route as {current_user.role.value}"
            )
        return current_user

    return role_dependency


get_current_admin_user = authorize(UserRole.ADMIN)
get_current_agent_user = authorize(UserRole.AGENT)
