"""
Tests for agent profiles, the registration request and reviews.
"""

import pytest
import uuid
from unittest.mock import patch

from app.models.agent import Agent
from app.models.user import User, UserRole
from app.repositories.agent import AgentRepository
from app.repositories.user import UserRepository
from app.schemas.agent import AgentCreate, AgentUpdate, ReviewCreate, ReviewUpdate
from app.services.agent import AgentService
from app.utils.exceptions import ConflictError, NotFoundError, OwnershipError
from tests.conftest import AgentFactory, UserFactory


@pytest.fixture
def agent_service(db_session, storage) -> AgentService:
    return AgentService(db_session, storage=storage)


class TestAgentProfiles:
    """Test agent profile management."""

    @pytest.mark.asyncio
    async def test_create_flattens_company(
        self,
        agent_service: AgentService,
        user_repository: UserRepository
    ):
        user = await UserFactory.create_user(user_repository, role=UserRole.AGENT)
        agent = await agent_service.create_agent(
            AgentCreate(
                bio="Commercial leasing",
                specialties=["commercial"],
                company={"name": "Acme Realty", "district": "Surat"},
                social_media={"linkedin": "https://linkedin.com/in/agent"},
            ),
            user,
        )

        assert agent.company_name == "Acme Realty"
        assert agent.company_district == "Surat"
        assert agent.social_media == {"linkedin": "https://linkedin.com/in/agent"}
        assert agent.to_dict()["company"]["name"] == "Acme Realty"

    @pytest.mark.asyncio
    async def test_create_twice_conflicts(
        self,
        agent_service: AgentService,
        test_agent_user: User,
        test_agent: Agent
    ):
        with pytest.raises(ConflictError, match="already exists"):
            await agent_service.create_agent(AgentCreate(), test_agent_user)

    @pytest.mark.asyncio
    async def test_get_my_agent_without_profile(self, agent_service: AgentService, test_user: User):
        with pytest.raises(NotFoundError):
            await agent_service.get_my_agent(test_user)

    @pytest.mark.asyncio
    async def test_owner_cannot_set_admin_fields(
        self,
        agent_service: AgentService,
        agent_repository: AgentRepository,
        test_agent_user: User
    ):
        agent = await AgentFactory.create_agent(agent_repository, test_agent_user, is_verified=False)

        updated = await agent_service.update_agent(
            agent.id,
            AgentUpdate(bio="Now verified?", is_verified=True, properties_sold=500),
            test_agent_user,
        )

        assert updated.bio == "Now verified?"
        assert updated.is_verified is False
        assert updated.properties_sold == 0

    @pytest.mark.asyncio
    async def test_stranger_cannot_update(
        self,
        agent_service: AgentService,
        test_agent: Agent,
        other_user: User
    ):
        with pytest.raises(OwnershipError):
            await agent_service.update_agent(test_agent.id, AgentUpdate(bio="Hijacked"), other_user)

    @pytest.mark.asyncio
    async def test_verification_promotes_user(
        self,
        agent_service: AgentService,
        agent_repository: AgentRepository,
        test_user: User,
        test_admin: User
    ):
        agent = await AgentFactory.create_agent(agent_repository, test_user, is_verified=False, is_active=False)

        updated = await agent_service.update_agent(
            agent.id, AgentUpdate(is_verified=True, is_active=True), test_admin
        )

        assert updated.is_verified is True
        assert updated.is_active is True
        assert test_user.role == UserRole.AGENT

    @pytest.mark.asyncio
    async def test_verification_survives_failed_promotion(
        self,
        agent_service: AgentService,
        agent_repository: AgentRepository,
        user_repository: UserRepository,
        test_user: User,
        test_admin: User
    ):
        agent = await AgentFactory.create_agent(agent_repository, test_user, is_verified=False, is_active=False)

        with patch.object(agent_service.user_repo, "save", side_effect=RuntimeError("database is locked")):
            updated = await agent_service.update_agent(agent.id, AgentUpdate(is_verified=True), test_admin)

        assert updated.is_verified is True
        assert (await agent_repository.reload(agent.id)).is_verified is True
        assert (await user_repository.reload(test_user.id)).role == UserRole.USER

    @pytest.mark.asyncio
    async def test_delete_by_owner(
        self,
        agent_service: AgentService,
        agent_repository: AgentRepository,
        test_agent_user: User,
        test_agent: Agent,
        other_user: User
    ):
        with pytest.raises(OwnershipError):
            await agent_service.delete_agent(test_agent.id, other_user)

        await agent_service.delete_agent(test_agent.id, test_agent_user)
        assert await agent_repository.get_by_id(test_agent.id) is None

    @pytest.mark.asyncio
    async def test_directory_hides_inactive_profiles(
        self,
        agent_service: AgentService,
        agent_repository: AgentRepository,
        test_agent: Agent,
        test_user: User
    ):
        pending = await AgentFactory.create_agent(agent_repository, test_user, is_verified=False, is_active=False)

        listed, total = await agent_service.list_agents()
        assert total == 1
        assert listed[0].id == test_agent.id

        unverified, _ = await agent_service.list_agents(verified=False)
        assert [a.id for a in unverified] == [pending.id]

        by_district, _ = await agent_service.list_agents(district="ahmedabad")
        assert [a.id for a in by_district] == [test_agent.id]

        top = await agent_service.get_top_agents()
        assert [a.id for a in top] == [test_agent.id]


class TestRegistrationRequest:
    """Test the agent registration request."""

    @pytest.mark.asyncio
    async def test_request_creates_inactive_unverified_profile(
        self,
        agent_service: AgentService,
        test_user: User
    ):
        agent = await agent_service.request_registration(
            AgentCreate(bio="Farm land broker", specialties=["land"]), test_user
        )

        assert agent.user_id == test_user.id
        assert agent.is_verified is False
        assert agent.is_active is False
        assert test_user.role == UserRole.USER

    @pytest.mark.asyncio
    async def test_second_request_conflicts(
        self,
        agent_service: AgentService,
        agent_repository: AgentRepository,
        test_user: User
    ):
        await agent_service.request_registration(AgentCreate(), test_user)

        with pytest.raises(ConflictError, match="already have an agent profile"):
            await agent_service.request_registration(AgentCreate(), test_user)

        assert await agent_repository.count(Agent.user_id == test_user.id) == 1


class TestReviews:
    """Test reviews and the derived rating."""

    @pytest.mark.asyncio
    async def test_add_review_updates_rating(
        self,
        agent_service: AgentService,
        test_agent: Agent,
        test_user: User,
        other_user: User
    ):
        await agent_service.add_review(test_agent.id, ReviewCreate(rating=4, comment="Helpful"), test_user)
        review = await agent_service.add_review(test_agent.id, ReviewCreate(rating=2), other_user)

        assert review.user_id == other_user.id
        reviews, ratings = await agent_service.list_reviews(test_agent.id)
        assert len(reviews) == 2
        assert ratings == {"average": 3.0, "count": 2}

    @pytest.mark.asyncio
    async def test_one_review_per_user(
        self,
        agent_service: AgentService,
        test_agent: Agent,
        test_user: User
    ):
        await agent_service.add_review(test_agent.id, ReviewCreate(rating=5), test_user)

        with pytest.raises(ConflictError, match="already reviewed"):
            await agent_service.add_review(test_agent.id, ReviewCreate(rating=1), test_user)

        _, ratings = await agent_service.list_reviews(test_agent.id)
        assert ratings == {"average": 5.0, "count": 1}

    @pytest.mark.asyncio
    async def test_review_unknown_agent(self, agent_service: AgentService, test_user: User):
        with pytest.raises(NotFoundError):
            await agent_service.add_review(uuid.uuid4(), ReviewCreate(rating=3), test_user)

    @pytest.mark.asyncio
    async def test_update_review_by_author_only(
        self,
        agent_service: AgentService,
        test_agent: Agent,
        test_user: User,
        other_user: User
    ):
        review = await agent_service.add_review(test_agent.id, ReviewCreate(rating=2), test_user)

        with pytest.raises(OwnershipError):
            await agent_service.update_review(test_agent.id, review.id, ReviewUpdate(rating=5), other_user)

        updated = await agent_service.update_review(test_agent.id, review.id, ReviewUpdate(rating=5), test_user)
        assert updated.rating == 5

        _, ratings = await agent_service.list_reviews(test_agent.id)
        assert ratings == {"average": 5.0, "count": 1}

    @pytest.mark.asyncio
    async def test_delete_review_recomputes_rating(
        self,
        agent_service: AgentService,
        test_agent: Agent,
        test_user: User,
        other_user: User,
        test_admin: User
    ):
        first = await agent_service.add_review(test_agent.id, ReviewCreate(rating=5), test_user)
        second = await agent_service.add_review(test_agent.id, ReviewCreate(rating=1), other_user)

        with pytest.raises(OwnershipError):
            await agent_service.delete_review(test_agent.id, first.id, other_user)

        await agent_service.delete_review(test_agent.id, second.id, test_admin)

        reviews, ratings = await agent_service.list_reviews(test_agent.id)
        assert [r.id for r in reviews] == [first.id]
        assert ratings == {"average": 5.0, "count": 1}

    @pytest.mark.asyncio
    async def test_delete_unknown_review(self, agent_service: AgentService, test_agent: Agent, test_admin: User):
        with pytest.raises(NotFoundError):
            await agent_service.delete_review(test_agent.id, uuid.uuid4(), test_admin)
