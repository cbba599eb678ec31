"""
Test configuration and fixtures for the real estate marketplace API.
Provides database fixtures, test data factories, and authenticated clients.
"""

import os
import tempfile

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "testing"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="realestate-uploads-"))

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.models.user import User, UserRole
from app.models.agent import Agent, AgentReview
from app.models.property import Property, PropertyType, PropertyStatus, ApprovalStatus
from app.models.message import Message, MessageSource, MessageType
from app.repositories.user import UserRepository
from app.repositories.agent import AgentRepository
from app.repositories.property import PropertyRepository
from app.repositories.message import MessageRepository
from app.services.auth import AuthService
from app.services.storage import StorageService
from app.utils.dependencies import get_storage_service, get_mail_service
from app.utils.exceptions import DependencyError

TEST_PASSWORD = "secret123"


class FakeMailService:
    """Records outgoing mail instead of talking to an SMTP server."""

    def __init__(self):
        self.sent: List[Dict[str, str]] = []
        self.fail = False

    async def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise DependencyError("Email could not be sent")
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(upload_dir=str(tmp_path / "uploads"), url_prefix="/uploads")


@pytest.fixture
def mail() -> FakeMailService:
    return FakeMailService()


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    storage: StorageService,
    mail: FakeMailService
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with database, storage and mail overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_mail_service] = lambda: mail

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def agent_repository(db_session: AsyncSession) -> AgentRepository:
    return AgentRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def message_repository(db_session: AsyncSession) -> MessageRepository:
    return MessageRepository(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        name: str = "Test User",
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        password: str = TEST_PASSWORD,
        role: UserRole = UserRole.USER,
        is_active: bool = True
    ) -> User:
        user = User(
            name=name,
            email=email if email is not None else f"user{uuid.uuid4().hex[:8]}@example.com",
            mobile=mobile,
            role=role,
            is_active=is_active,
        )
        user.set_password(password)
        return await user_repo.save(user)


class AgentFactory:
    """Factory for creating agent profiles."""

    @staticmethod
    async def create_agent(
        agent_repo: AgentRepository,
        user: User,
        is_verified: bool = True,
        is_active: bool = True,
        **fields
    ) -> Agent:
        agent = Agent(user_id=user.id, is_verified=is_verified, is_active=is_active, **fields)
        return await agent_repo.save(agent)

    @staticmethod
    async def add_review(agent_repo: AgentRepository, agent: Agent, user: User, rating: int) -> Agent:
        agent.reviews.append(AgentReview(user_id=user.id, rating=rating))
        return await agent_repo.save(agent)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_payload(**overrides) -> dict:
        """JSON body accepted by POST /api/properties."""
        payload = {
            "title": "Family home near the lake",
            "description": "Three bedrooms with a garden",
            "price": 4500000,
            "status": "for-sale",
            "type": "house",
            "totalArea": 1450,
            "bedrooms": 3,
            "bathrooms": 2,
            "location": {
                "city": "Ahmedabad",
                "state": "Gujarat",
                "district": "Ahmedabad",
                "village": "Bopal",
            },
            "contactInfo": {
                "name": "Asha Patel",
                "email": "asha@example.com",
                "phone": "9876543210",
            },
            "amenities": "parking, garden",
        }
        payload.update(overrides)
        return payload

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        owner: User,
        title: str = "Test Property",
        price: Decimal = Decimal("1500000.00"),
        property_type: PropertyType = PropertyType.HOUSE,
        status: PropertyStatus = PropertyStatus.FOR_SALE,
        approval_status: ApprovalStatus = ApprovalStatus.PENDING,
        is_published: bool = False,
        **fields
    ) -> Property:
        fields.setdefault("total_area", 1200.0)
        fields.setdefault("state", "Gujarat")
        fields.setdefault("contact_info", {"name": owner.name, "email": owner.email, "phone": "9876543210"})
        property_obj = Property(
            title=title,
            price=price,
            type=property_type,
            status=status,
            owner_id=owner.id,
            approval_status=approval_status,
            is_published=is_published,
            **fields
        )
        return await property_repo.save(property_obj)


class MessageFactory:
    """Factory for stored messages."""

    @staticmethod
    async def create_message(
        message_repo: MessageRepository,
        source: MessageSource = MessageSource.CONTACT_FORM,
        email: str = "visitor@example.com",
        subject: str = "Question about a listing",
        body: str = "Is the property still available?",
        **fields
    ) -> Message:
        message = Message(
            name="Visitor",
            email=email,
            subject=subject,
            body=body,
            message_type=fields.pop("message_type", MessageType.GENERAL),
            source=source,
            **fields
        )
        return await message_repo.save(message)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {AuthService.issue_token(user)}"}


def image_bytes(fmt: str = "PNG") -> bytes:
    """A tiny valid image for upload tests."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


# Common test fixtures
@pytest.fixture
async def test_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, name="Regular User", email="user@example.com")


@pytest.fixture
async def other_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, name="Other User", email="other@example.com")


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        name="Site Admin",
        email="admin@example.com",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_agent_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        name="Agent Smith",
        email="agent@example.com",
        role=UserRole.AGENT
    )


@pytest.fixture
async def test_agent(agent_repository: AgentRepository, test_agent_user: User) -> Agent:
    return await AgentFactory.create_agent(
        agent_repository,
        test_agent_user,
        bio="Land and residential specialist",
        specialties=["residential", "land"],
        company_district="Ahmedabad",
    )


@pytest.fixture
async def pending_property(property_repository: PropertyRepository, test_user: User) -> Property:
    return await PropertyFactory.create_property(property_repository, test_user, title="Pending listing")


@pytest.fixture
async def approved_property(property_repository: PropertyRepository, test_user: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        test_user,
        title="Approved listing",
        approval_status=ApprovalStatus.APPROVED,
        is_published=True,
        city="Ahmedabad",
        district="Ahmedabad",
        village="Bopal",
    )


@pytest.fixture
def user_headers(test_user: User) -> Dict[str, str]:
    return auth_headers(test_user)


@pytest.fixture
def admin_headers(test_admin: User) -> Dict[str, str]:
    return auth_headers(test_admin)


@pytest.fixture
def agent_headers(test_agent_user: User) -> Dict[str, str]:
    return auth_headers(test_agent_user)
