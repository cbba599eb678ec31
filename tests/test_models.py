"""
Tests for database models: password handling, ownership, moderation states,
derived agent ratings and serialization.
"""

import pytest
import uuid
from decimal import Decimal

from app.models.user import User, UserRole
from app.models.agent import Agent, calculate_rating
from app.models.property import Property, PropertyType, PropertyStatus, ApprovalStatus
from app.models.image import PropertyImage
from app.models.message import MessageSource, MessageStatus
from app.repositories.agent import AgentRepository
from app.repositories.message import MessageRepository
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from tests.conftest import UserFactory, AgentFactory, PropertyFactory, MessageFactory


class TestUserModel:
    """Test User model behaviour."""

    def test_hash_and_verify_password(self):
        user = User(name="Asha", email="asha@example.com")
        user.set_password("secret1")

        assert user.hashed_password != "secret1"
        assert user.verify_password("secret1")
        assert not user.verify_password("wrong-password")
        assert not user.verify_password("")

    def test_short_password_rejected(self):
        with pytest.raises(ValueError, match="at least 6 characters"):
            User.hash_password("12345")

    def test_validate_email_format_normalizes(self):
        assert User.validate_email_format("Asha.Patel@Example.COM") == "asha.patel@example.com"

    def test_validate_email_format_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid email format"):
            User.validate_email_format("not-an-email")

    def test_can_manage_own_resources_only(self):
        user = User(name="Owner", role=UserRole.USER)
        user.id = uuid.uuid4()
        other_id = uuid.uuid4()

        assert user.can_manage(user.id)
        assert not user.can_manage(other_id)
        assert not user.can_manage(None)

    def test_admin_can_manage_everything(self):
        admin = User(name="Admin", role=UserRole.ADMIN)
        assert admin.is_admin
        assert admin.can_manage(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_to_dict_excludes_secrets(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="dict@example.com", mobile="9876543210")
        data = user.to_dict()

        assert data["email"] == "dict@example.com"
        assert data["mobile"] == "9876543210"
        assert data["role"] == "user"
        assert "hashed_password" not in data
        assert "reset_password_token" not in data


class TestApprovalStatus:
    """Test the moderation state machine."""

    @pytest.mark.parametrize("source, target, allowed", [
        (ApprovalStatus.PENDING, ApprovalStatus.APPROVED, True),
        (ApprovalStatus.PENDING, ApprovalStatus.REJECTED, True),
        (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED, True),
        (ApprovalStatus.REJECTED, ApprovalStatus.APPROVED, True),
        (ApprovalStatus.APPROVED, ApprovalStatus.APPROVED, False),
        (ApprovalStatus.REJECTED, ApprovalStatus.REJECTED, False),
        (ApprovalStatus.APPROVED, ApprovalStatus.PENDING, False),
    ])
    def test_transitions(self, source, target, allowed):
        assert source.can_transition_to(target) is allowed


class TestPropertyModel:
    """Test Property visibility and serialization."""

    @pytest.mark.parametrize("is_published, approval_status, visible", [
        (False, ApprovalStatus.PENDING, False),
        (False, ApprovalStatus.REJECTED, False),
        (False, ApprovalStatus.APPROVED, True),
        (True, ApprovalStatus.PENDING, True),
        (True, ApprovalStatus.APPROVED, True),
    ])
    def test_public_visibility(self, is_published, approval_status, visible):
        property_obj = Property(is_published=is_published, approval_status=approval_status)
        assert property_obj.is_publicly_visible is visible

    @pytest.mark.asyncio
    async def test_to_dict_nests_location_and_owner(
        self,
        property_repository: PropertyRepository,
        test_user: User
    ):
        property_obj = await PropertyFactory.create_property(
            property_repository,
            test_user,
            city="Surat",
            village="Adajan",
            latitude=21.19,
            longitude=72.79,
        )
        data = property_obj.to_dict()

        assert data["location"]["city"] == "Surat"
        assert data["location"]["village"] == "Adajan"
        assert data["location"]["coordinates"] == {"latitude": 21.19, "longitude": 72.79}
        assert data["owner"]["id"] == str(test_user.id)
        assert data["approval_status"] == "pending"
        assert data["is_published"] is False
        assert data["price"] == 1500000.0
        assert data["images"] == []

    @pytest.mark.asyncio
    async def test_images_ordered_with_primary(
        self,
        property_repository: PropertyRepository,
        test_user: User
    ):
        property_obj = Property(
            title="With images",
            price=Decimal("100"),
            status=PropertyStatus.FOR_RENT,
            type=PropertyType.APARTMENT,
            total_area=500,
            state="Gujarat",
            owner_id=test_user.id,
        )
        property_obj.images = [
            PropertyImage(url="/uploads/b.png", alt="b", is_primary=False, display_order=1),
            PropertyImage(url="/uploads/a.png", alt="a", is_primary=True, display_order=0),
        ]
        saved = await property_repository.save(property_obj)

        assert [image.url for image in saved.images] == ["/uploads/a.png", "/uploads/b.png"]
        assert saved.primary_image.url == "/uploads/a.png"


class TestAgentRating:
    """Test the derived agent rating."""

    def test_calculate_rating_empty(self):
        assert calculate_rating([]) == (0.0, 0)

    def test_calculate_rating_mean(self):
        assert calculate_rating([5, 4, 3]) == (4.0, 3)

    @pytest.mark.asyncio
    async def test_rating_follows_reviews_on_every_save(
        self,
        agent_repository: AgentRepository,
        test_agent: Agent,
        test_user: User,
        other_user: User
    ):
        agent = await AgentFactory.add_review(agent_repository, test_agent, test_user, 5)
        agent = await AgentFactory.add_review(agent_repository, agent, other_user, 2)

        assert agent.rating_count == 2
        assert agent.rating_average == pytest.approx(3.5)

        # An unrelated save leaves the aggregate untouched
        agent.bio = "Updated bio"
        agent = await agent_repository.save(agent)
        assert agent.rating_count == 2
        assert agent.rating_average == pytest.approx(3.5)

        agent.reviews = [review for review in agent.reviews if review.user_id != other_user.id]
        agent = await agent_repository.save(agent)
        assert agent.rating_count == 1
        assert agent.rating_average == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_rating_cannot_drift_from_reviews(
        self,
        agent_repository: AgentRepository,
        test_agent: Agent
    ):
        test_agent.rating_average = 4.9
        test_agent.rating_count = 100
        agent = await agent_repository.save(test_agent)

        assert agent.rating_average == 0.0
        assert agent.rating_count == 0

    @pytest.mark.asyncio
    async def test_to_dict_shape(self, test_agent: Agent):
        data = test_agent.to_dict()

        assert data["user"]["name"] == "Agent Smith"
        assert data["company"]["district"] == "Ahmedabad"
        assert data["ratings"] == {"average": 0.0, "count": 0}
        assert data["reviews"] == []
        assert "reviews" not in test_agent.to_dict(include_reviews=False)


class TestMessageModel:
    """Test Message serialization."""

    @pytest.mark.asyncio
    async def test_to_dict_metadata(self, message_repository: MessageRepository):
        message = await MessageFactory.create_message(
            message_repository,
            ip_address="10.0.0.1",
            user_agent="pytest",
        )
        data = message.to_dict()

        assert data["message"] == "Is the property still available?"
        assert data["status"] == MessageStatus.NEW.value
        assert data["metadata"] == {
            "source": MessageSource.CONTACT_FORM.value,
            "ip_address": "10.0.0.1",
            "user_agent": "pytest",
            "reply_to": None,
        }
        assert "response" not in data
