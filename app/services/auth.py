"""
Authentication service for registration, login, session tokens and password management.
"""

from typing import Optional, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import UploadFile
from jose import JWTError, ExpiredSignatureError
from app.config import settings
from app.repositories.user import UserRepository
from app.repositories.agent import AgentRepository
from app.models.user import User, UserRole
from app.models.agent import Agent
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdateRequest,
    PasswordUpdateRequest,
)
from app.services.mail import MailService
from app.services.storage import StorageService
from app.utils.auth import (
    create_access_token,
    verify_token,
    generate_reset_token,
    hash_reset_token,
)
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    DependencyError,
    InactiveUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing accounts and sessions.
    Tokens are stateless; nothing is stored server-side for a session.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        mail: Optional[MailService] = None,
        storage: Optional[StorageService] = None
    ):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.agent_repo = AgentRepository(db_session)
        self.mail = mail
        self.storage = storage

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(user_id=user.id, role=user.role)

    async def register(self, data: RegisterRequest) -> Tuple[User, str]:
        """
        Register a new account.

        Args:
            data: Validated registration payload

        Returns:
            Tuple of (user, session token)

        Raises:
            ConflictError: If the email or mobile is already registered
        """
        try:
            existing = await self.user_repo.find_conflicting(email=data.email, mobile=data.mobile)
            if existing:
                logger.warning(f"Registration rejected, identifier in use: {data.email or data.mobile}")
                raise ConflictError("User already exists with this email or mobile number")

            user = User(
                name=data.name,
                email=data.email,
                mobile=data.mobile,
                hashed_password=User.hash_password(data.password),
                role=data.role,
            )
            self.db.add(user)

            if data.role == UserRole.AGENT:
                # Self-registered agents start unverified
                self.db.add(Agent(user=user, is_verified=False, is_active=True))

            user = await self.user_repo.save(user)
            logger.info(f"User registered: {user.email or user.mobile} (ID: {user.id}, role: {user.role.value})")
            return user, self.issue_token(user)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Registration failed: {e}", exc_info=True)
            raise

    async def login(self, data: LoginRequest) -> Tuple[User, str]:
        """
        Authenticate with email or mobile plus password.

        Raises:
            InvalidCredentialsError: If no account matches or the password is wrong
            InactiveUserError: If the account is deactivated
        """
        identifier = data.email or data.mobile
        if data.email:
            user = await self.user_repo.get_by_email(data.email)
        else:
            user = await self.user_repo.get_by_mobile(data.mobile)

        if not user or not user.verify_password(data.password):
            logger.warning(f"Failed authentication attempt for: {identifier}")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Login attempt on deactivated account: {identifier}")
            raise InactiveUserError()

        logger.info(f"User authenticated successfully: {identifier}")
        return user, self.issue_token(user)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user a session token belongs to.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or the user no longer exists
            InactiveUserError: If the account has been deactivated
        """
        try:
            payload = verify_token(token)
            user_id = uuid.UUID(payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User no longer exists")
        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_profile(self, user: User) -> Dict[str, Any]:
        """Current user with favorites and, for agents, the agent profile."""
        profile = user.to_dict()
        favorites = await self.user_repo.list_favorites(user.id)
        profile["favorites"] = [p.to_dict(include_owner=False) for p in favorites]

        if user.role == UserRole.AGENT:
            agent = await self.agent_repo.get_by_user_id(user.id)
            profile["agent_profile"] = agent.to_dict(include_reviews=False) if agent else None

        return profile

    async def update_profile(self, user: User, data: ProfileUpdateRequest) -> User:
        """
        Update name, email and mobile of the acting user.

        Raises:
            ConflictError: If the new email or mobile belongs to another account
        """
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

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
        logger.info(f"Profile updated for user {user.id}")
        return user

    async def update_password(self, user: User, data: PasswordUpdateRequest) -> Tuple[User, str]:
        if not user.verify_password(data.current_password):
            logger.warning(f"Password change with wrong current password for user {user.id}")
            raise BadRequestError("Current password is incorrect")

        user.set_password(data.new_password)
        user = await self.user_repo.save(user)
        logger.info(f"Password updated for user {user.id}")
        return user, self.issue_token(user)

    async def forgot_password(self, email: str) -> None:
        """
        Start a password reset by emailing a single-use link.

        Only the token hash is stored. When the email cannot be sent the
        pending reset is cleared again.

        Raises:
            NotFoundError: If no account has this email
            DependencyError: If the email could not be sent
        """
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise NotFoundError("User")

        token, token_hash, expires_at = generate_reset_token()
        user.reset_password_token = token_hash
        user.reset_password_expire = expires_at
        user = await self.user_repo.save(user)

        reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password.html?token={token}"
        body = (
            "You are receiving this email because a password reset was requested "
            f"for your account.\n\nOpen the following link to choose a new password:\n\n{reset_url}\n\n"
            f"The link expires in {settings.password_reset_expire_minutes} minutes."
        )

        try:
            await self.mail.send(to=user.email, subject="Password reset", body=body)
        except DependencyError:
            user.clear_reset_token()
            await self.user_repo.save(user)
            raise

        logger.info(f"Password reset requested for user {user.id}")

    async def reset_password(self, token: str, password: str) -> Tuple[User, str]:
        """
        Complete a password reset.

        Raises:
            BadRequestError: If the token is unknown or expired
        """
        user = await self.user_repo.get_by_reset_token(hash_reset_token(token))
        if not user:
            raise BadRequestError("Invalid or expired reset token")

        user.set_password(password)
        user.clear_reset_token()
        user = await self.user_repo.save(user)
        logger.info(f"Password reset completed for user {user.id}")
        return user, self.issue_token(user)

    async def upload_avatar(self, user: User, file: UploadFile) -> User:
        previous = user.avatar
        user.avatar = await self.storage.save_image(file, "avatars")
        user = await self.user_repo.save(user)

        if previous:
            self.storage.delete([previous])
        return user
