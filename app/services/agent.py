"""
Agent service for the agent directory.
Handles profile management, reviews and the agent registration request.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import UploadFile
from app.repositories.agent import AgentRepository
from app.repositories.user import UserRepository
from app.models.agent import Agent, AgentReview, COMPANY_FIELDS
from app.models.user import User, UserRole
from app.schemas.agent import AgentCreate, AgentUpdate, ReviewCreate, ReviewUpdate, ADMIN_ONLY_AGENT_FIELDS
from app.services.storage import StorageService
from app.utils.exceptions import (
    APIException,
    ConflictError,
    NotFoundError,
    OwnershipError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


def apply_agent_profile(agent: Agent, data: Dict[str, Any]) -> None:
    """Copy a dumped AgentCreate/AgentUpdate onto the model, flattening the company record."""
    company = data.pop("company", None)
    if company is not None:
        for field in COMPANY_FIELDS:
            if field in company:
                setattr(agent, f"company_{field}", company[field])

    social_media = data.pop("social_media", None)
    if social_media is not None:
        agent.social_media = {k: v for k, v in social_media.items() if v}

    for field, value in data.items():
        setattr(agent, field, value)


class AgentService:
    """
    Agent service for profiles and reviews.
    Ratings are never written here; they follow the review collection.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageService] = None):
        self.db = db_session
        self.agent_repo = AgentRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.storage = storage

    async def get_agent(self, agent_id: uuid.UUID) -> Agent:
        agent = await self.agent_repo.get_by_id(agent_id)
        if not agent:
            raise NotFoundError("Agent", str(agent_id))
        return agent

    async def get_my_agent(self, current_user: User) -> Agent:
        agent = await self.agent_repo.get_by_user_id(current_user.id)
        if not agent:
            raise NotFoundError("Agent profile")
        return agent

    async def list_agents(self, page: int = 1, limit: int = 10, **filters) -> Tuple[List[Agent], int]:
        return await self.agent_repo.list_agents(page=page, limit=limit, **filters)

    async def get_top_agents(self, limit: int = 6) -> List[Agent]:
        return await self.agent_repo.get_top_agents(limit)

    async def create_agent(self, data: AgentCreate, current_user: User) -> Agent:
        """
        Create the agent profile of a user who already has the agent role.

        Raises:
            ConflictError: If the user already has a profile
        """
        if await self.agent_repo.get_by_user_id(current_user.id):
            raise ConflictError("Agent profile already exists")

        agent = Agent(user_id=current_user.id)
        apply_agent_profile(agent, data.model_dump())

        agent = await self.agent_repo.save(agent)
        logger.info(f"Agent profile created for user {current_user.id} (ID: {agent.id})")
        return agent

    async def update_agent(self, agent_id: uuid.UUID, data: AgentUpdate, current_user: User) -> Agent:
        """
        Update an agent profile as its owner or an admin.

        Verification, activation and sales figures are admin-only and are
        ignored for anyone else. Verifying an agent promotes its user to the
        agent role; that promotion is best-effort.

        Raises:
            NotFoundError: If the agent doesn't exist
            OwnershipError: If the user neither owns the profile nor is an admin
        """
        try:
            agent = await self.get_agent(agent_id)
            if not current_user.can_manage(agent.user_id):
                raise OwnershipError("agent profile")

            changes = data.model_dump(exclude_unset=True)
            if not current_user.is_admin:
                ignored = [field for field in ADMIN_ONLY_AGENT_FIELDS if field in changes]
                for field in ignored:
                    changes.pop(field)
                if ignored:
                    logger.warning(f"User {current_user.id} tried to change admin-only agent fields: {ignored}")

            was_verified = agent.is_verified
            user_id = agent.user_id
            apply_agent_profile(agent, changes)

            agent = await self.agent_repo.save(agent)
            logger.info(f"Agent {agent_id} updated by user {current_user.id}")

            if not was_verified and agent.is_verified:
                await self._promote_user(user_id)
                agent = await self.agent_repo.reload(agent_id)

            return agent

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update agent {agent_id}: {e}")
            raise

    async def _promote_user(self, user_id: uuid.UUID) -> None:
        """Give the user the agent role; failure is logged and tolerated."""
        try:
            user = await self.user_repo.get_by_id(user_id)
            if user and user.role != UserRole.AGENT and not user.is_admin:
                user.role = UserRole.AGENT
                await self.user_repo.save(user)
                logger.info(f"User {user_id} promoted to agent after verification")
        except Exception as e:
            # Drop the pending role change; the verification is already committed.
            await self.db.rollback()
            logger.warning(f"Failed to set role agent for user {user_id}: {e}")

    async def delete_agent(self, agent_id: uuid.UUID, current_user: User) -> None:
        agent = await self.get_agent(agent_id)
        if not current_user.can_manage(agent.user_id):
            raise OwnershipError("agent profile")

        await self.agent_repo.delete(agent_id)
        logger.info(f"Agent {agent_id} deleted by user {current_user.id}")

    async def request_registration(
        self,
        data: AgentCreate,
        current_user: User,
        avatar: Optional[UploadFile] = None
    ) -> Agent:
        """
        Submit an agent registration request for admin review.

        The profile is created unverified and inactive.

        Raises:
            ConflictError: If any agent profile exists for the user
        """
        if await self.agent_repo.get_by_user_id(current_user.id):
            raise ConflictError("You already have an agent profile")

        if avatar is not None and avatar.filename:
            current_user.avatar = await self.storage.save_image(avatar, "avatars")

        agent = Agent(user_id=current_user.id, is_verified=False, is_active=False)
        apply_agent_profile(agent, data.model_dump())

        agent = await self.agent_repo.save(agent)
        logger.info(f"Agent registration requested by user {current_user.id} (ID: {agent.id})")
        return agent

    # Reviews

    async def list_reviews(self, agent_id: uuid.UUID) -> Tuple[List[AgentReview], Dict[str, Any]]:
        agent = await self.get_agent(agent_id)
        ratings = {"average": agent.rating_average, "count": agent.rating_count}
        return list(agent.reviews), ratings

    @staticmethod
    def _find_review(agent: Agent, review_id: uuid.UUID) -> AgentReview:
        for review in agent.reviews:
            if review.id == review_id:
                return review
        raise NotFoundError("Review", str(review_id))

    async def add_review(self, agent_id: uuid.UUID, data: ReviewCreate, current_user: User) -> AgentReview:
        """
        Add the current user's review of an agent.

        Raises:
            NotFoundError: If the agent doesn't exist
            ConflictError: If the user already reviewed this agent
        """
        agent = await self.get_agent(agent_id)
        if agent.find_review_by_user(current_user.id):
            raise ConflictError("You have already reviewed this agent")

        agent.reviews.append(
            AgentReview(user_id=current_user.id, rating=data.rating, comment=data.comment)
        )
        agent = await self.agent_repo.save(agent)

        logger.info(f"User {current_user.id} reviewed agent {agent_id} ({data.rating})")
        return agent.find_review_by_user(current_user.id)

    async def update_review(
        self,
        agent_id: uuid.UUID,
        review_id: uuid.UUID,
        data: ReviewUpdate,
        current_user: User
    ) -> AgentReview:
        agent = await self.get_agent(agent_id)
        review = self._find_review(agent, review_id)
        if review.user_id != current_user.id:
            raise OwnershipError("review")

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(review, field, value)

        agent = await self.agent_repo.save(agent)
        return self._find_review(agent, review_id)

    async def delete_review(self, agent_id: uuid.UUID, review_id: uuid.UUID, current_user: User) -> None:
        """Remove a review as its author or an admin."""
        agent = await self.get_agent(agent_id)
        review = self._find_review(agent, review_id)
        if not current_user.can_manage(review.user_id):
            raise OwnershipError("review")

        agent.reviews = [r for r in agent.reviews if r.id != review_id]
        await self.agent_repo.save(agent)
        logger.info(f"Review {review_id} on agent {agent_id} deleted by user {current_user.id}")
