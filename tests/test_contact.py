"""
Tests for contact-form messages, public inquiries and admin replies.
"""

import pytest
import uuid
from httpx import AsyncClient

from app.models.message import MessagePriority, MessageSource, MessageStatus, MessageType
from app.models.user import User
from app.repositories.message import MessageRepository
from app.schemas.message import ContactCreate, InquiryCreate, MessageUpdate
from app.services.contact import ContactService
from app.utils.exceptions import DependencyError, NotFoundError
from tests.conftest import MessageFactory


def contact_payload(**overrides) -> dict:
    payload = {
        "name": "Kiran Shah",
        "email": "Kiran@Example.com",
        "phone": "9876543210",
        "subject": "Site visit request",
        "message": "Can I visit the Bopal listing this weekend?",
        "type": "property_inquiry",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def contact_service(db_session, mail) -> ContactService:
    return ContactService(db_session, mail=mail)


class TestContactSubmission:
    """Test contact-form submissions."""

    @pytest.mark.asyncio
    async def test_requires_an_admin(self, contact_service: ContactService, test_user: User):
        with pytest.raises(DependencyError, match="No admin user found"):
            await contact_service.create_contact(ContactCreate(**contact_payload()))

    @pytest.mark.asyncio
    async def test_addressed_to_admin(
        self,
        contact_service: ContactService,
        test_admin: User,
        test_user: User
    ):
        message = await contact_service.create_contact(
            ContactCreate(**contact_payload()),
            sender=test_user,
            ip_address="203.0.113.7",
            user_agent="Mozilla/5.0",
        )

        assert message.recipient_id == test_admin.id
        assert message.sender_id == test_user.id
        assert message.email == "kiran@example.com"
        assert message.message_type == MessageType.PROPERTY_INQUIRY
        assert message.source == MessageSource.CONTACT_FORM
        assert message.status == MessageStatus.NEW
        assert message.priority == MessagePriority.MEDIUM
        assert message.to_dict()["metadata"]["ip_address"] == "203.0.113.7"

    @pytest.mark.asyncio
    async def test_inquiry_needs_no_recipient(self, contact_service: ContactService):
        message = await contact_service.create_inquiry(
            InquiryCreate(name="K", email="k@example.com", subject="Hi", message="Price?")
        )

        assert message.source == MessageSource.INQUIRY
        assert message.recipient_id is None

    @pytest.mark.asyncio
    async def test_user_messages_by_sender_or_email(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository,
        test_user: User
    ):
        by_email = await MessageFactory.create_message(message_repository, email=test_user.email)
        by_sender = await MessageFactory.create_message(message_repository, sender_id=test_user.id)
        await MessageFactory.create_message(message_repository, email="someone@example.com")

        messages, total = await contact_service.get_user_messages(test_user)

        assert total == 2
        assert {m.id for m in messages} == {by_email.id, by_sender.id}


class TestContactTriage:
    """Test admin triage of stored messages."""

    @pytest.mark.asyncio
    async def test_mark_as_read_stamps_read_time(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository
    ):
        message = await MessageFactory.create_message(message_repository)

        first = await contact_service.mark_as_read(message.id)
        first_read_at = first.read_at
        second = await contact_service.mark_as_read(message.id)

        assert second.is_read is True
        assert second.status == MessageStatus.READ
        assert first_read_at is not None
        assert second.read_at >= first_read_at

    @pytest.mark.asyncio
    async def test_mark_as_read_overrides_replied_status(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository
    ):
        message = await MessageFactory.create_message(message_repository, status=MessageStatus.REPLIED)
        message = await contact_service.mark_as_read(message.id)

        assert message.status == MessageStatus.READ
        assert message.is_read is True
        assert message.read_at is not None

    @pytest.mark.asyncio
    async def test_update_message(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository,
        test_admin: User
    ):
        message = await MessageFactory.create_message(message_repository)

        updated = await contact_service.update_message(
            message.id,
            MessageUpdate(status=MessageStatus.CLOSED, priority=MessagePriority.URGENT,
                          type=MessageType.SUPPORT, assigned_to=test_admin.id),
        )

        assert updated.status == MessageStatus.CLOSED
        assert updated.priority == MessagePriority.URGENT
        assert updated.message_type == MessageType.SUPPORT
        assert updated.assigned_to_id == test_admin.id

    @pytest.mark.asyncio
    async def test_operations_scoped_to_source(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository
    ):
        inquiry = await MessageFactory.create_message(message_repository, source=MessageSource.INQUIRY)

        with pytest.raises(NotFoundError, match="Contact message"):
            await contact_service.get_message(inquiry.id, MessageSource.CONTACT_FORM)
        with pytest.raises(NotFoundError):
            await contact_service.delete_message(inquiry.id, MessageSource.CONTACT_FORM)

        assert (await contact_service.get_message(inquiry.id, MessageSource.INQUIRY)).id == inquiry.id

    @pytest.mark.asyncio
    async def test_list_sorted_by_priority(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository
    ):
        low = await MessageFactory.create_message(message_repository, priority=MessagePriority.LOW)
        urgent = await MessageFactory.create_message(message_repository, priority=MessagePriority.URGENT)
        high = await MessageFactory.create_message(message_repository, priority=MessagePriority.HIGH)
        await MessageFactory.create_message(message_repository, source=MessageSource.INQUIRY)

        messages, total = await contact_service.list_messages(MessageSource.CONTACT_FORM, sort="priority")

        assert total == 3
        assert [m.id for m in messages] == [urgent.id, high.id, low.id]

    @pytest.mark.asyncio
    async def test_statistics(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository
    ):
        await MessageFactory.create_message(message_repository)
        await MessageFactory.create_message(message_repository, status=MessageStatus.READ, is_read=True)
        await MessageFactory.create_message(message_repository, message_type=MessageType.SUPPORT)
        await MessageFactory.create_message(message_repository, source=MessageSource.INQUIRY)

        stats = await contact_service.get_statistics(MessageSource.CONTACT_FORM)

        assert stats["total"] == 3
        assert stats["new"] == 2
        assert stats["read"] == 1
        assert stats["unread"] == 2
        assert stats["last_30_days"] == 3
        assert stats["by_type"]["support"] == 1
        assert stats["by_priority"]["medium"] == 3


class TestReply:
    """Test admin replies."""

    @pytest.mark.asyncio
    async def test_reply_records_response(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository,
        mail,
        test_admin: User
    ):
        original = await MessageFactory.create_message(message_repository)

        reply = await contact_service.reply(original.id, test_admin, "Yes, it is still available.")

        assert reply.source == MessageSource.ADMIN_REPLY
        assert reply.reply_to_id == original.id
        assert reply.subject == "Re: Question about a listing"
        assert reply.email == original.email
        assert reply.sender_id == test_admin.id

        assert original.status == MessageStatus.REPLIED
        assert original.response_message == "Yes, it is still available."
        assert original.responded_by_id == test_admin.id
        assert original.to_dict()["response"]["message"] == "Yes, it is still available."

        assert mail.sent == [{
            "to": "visitor@example.com",
            "subject": "Re: Question about a listing",
            "body": "Yes, it is still available.",
        }]

    @pytest.mark.asyncio
    async def test_reply_stored_when_mail_fails(
        self,
        contact_service: ContactService,
        message_repository: MessageRepository,
        mail,
        test_admin: User
    ):
        original = await MessageFactory.create_message(message_repository)
        mail.fail = True

        reply = await contact_service.reply(original.id, test_admin, "We will call you tomorrow.")

        assert await message_repository.get_by_id(reply.id) is not None
        assert original.status == MessageStatus.REPLIED

    @pytest.mark.asyncio
    async def test_reply_to_missing_message(self, contact_service: ContactService, test_admin: User):
        with pytest.raises(NotFoundError):
            await contact_service.reply(uuid.uuid4(), test_admin, "Nobody will read this.")


class TestContactAPI:
    """Test the contact and inquiry endpoints."""

    @pytest.mark.asyncio
    async def test_submit_without_admin_is_dependency_error(self, async_client: AsyncClient):
        response = await async_client.post("/api/contact", json=contact_payload())

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "DEPENDENCY_ERROR"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_submit_and_triage(
        self,
        async_client: AsyncClient,
        test_admin: User,
        admin_headers: dict
    ):
        response = await async_client.post(
            "/api/contact", json=contact_payload(), headers={"User-Agent": "pytest-client"}
        )
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["metadata"]["user_agent"] == "pytest-client"

        response = await async_client.put(f"/api/contact/{created['id']}/read", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "read"

        response = await async_client.post(
            f"/api/contact/{created['id']}/reply",
            json={"message": "Saturday at 11 works for us."},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["metadata"]["reply_to"] == created["id"]

        response = await async_client.get("/api/contact", headers=admin_headers)
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["status"] == "replied"

    @pytest.mark.asyncio
    async def test_short_contact_message_rejected(self, async_client: AsyncClient, test_admin: User):
        response = await async_client.post("/api/contact", json=contact_payload(message="Hi"))

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert any(detail["field"] == "message" for detail in body["details"])

    @pytest.mark.asyncio
    async def test_contact_inbox_is_admin_only(self, async_client: AsyncClient, user_headers: dict):
        response = await async_client.get("/api/contact", headers=user_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_my_messages(
        self,
        async_client: AsyncClient,
        message_repository: MessageRepository,
        test_user: User,
        user_headers: dict
    ):
        await MessageFactory.create_message(message_repository, email=test_user.email)

        response = await async_client.get("/api/contact/my-messages", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_public_inquiry(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.post(
            "/api/messages",
            json={"name": "Mehul", "email": "mehul@example.com", "subject": "Rent", "message": "Is it furnished?"},
        )
        assert response.status_code == 201
        inquiry_id = response.json()["data"]["id"]

        response = await async_client.get(f"/api/contact/{inquiry_id}", headers=admin_headers)
        assert response.status_code == 404

        response = await async_client.get(f"/api/messages/{inquiry_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["metadata"]["source"] == "inquiry"

        response = await async_client.delete(f"/api/messages/{inquiry_id}", headers=admin_headers)
        assert response.status_code == 200

        response = await async_client.get("/api/messages", headers=admin_headers)
        assert response.json()["count"] == 0
