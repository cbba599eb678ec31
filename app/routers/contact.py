"""
Contact form API endpoints.
Anyone may submit; admins triage, reply to and delete contact-form messages.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from uuid import UUID

from app.models.user import User
from app.models.message import MessageSource, MessageStatus, MessagePriority, MessageType
from app.services.contact import ContactService
from app.schemas.message import ContactCreate, MessageUpdate, ReplyRequest
from app.schemas.common import success_response, paginated_response
from app.middleware.request_context import get_client_ip
from app.utils.dependencies import (
    get_current_user,
    get_current_admin_user,
    get_optional_current_user,
    get_contact_service
)
from app.config import settings


router = APIRouter(prefix="/contact", tags=["Contact"])

SOURCE = MessageSource.CONTACT_FORM


@router.post("", status_code=status.HTTP_201_CREATED, summary="Send a contact message")
async def create_contact(
    contact_data: ContactCreate,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_current_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    message = await contact_service.create_contact(
        contact_data,
        sender=current_user,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )
    return success_response(
        message.to_dict(),
        message="Your message has been sent successfully. We will get back to you soon."
    )


@router.get("/my-messages", summary="Messages you sent or that were sent to your email")
async def my_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    messages, total = await contact_service.get_user_messages(current_user, page=page, limit=limit)
    return paginated_response([m.to_dict() for m in messages], page, limit, total)


@router.get("", summary="List contact messages")
async def list_contacts(
    message_status: Optional[MessageStatus] = Query(None, alias="status"),
    priority: Optional[MessagePriority] = Query(None),
    message_type: Optional[MessageType] = Query(None, alias="type"),
    sort: str = Query("newest", description="newest, oldest, priority or status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    messages, total = await contact_service.list_messages(
        SOURCE,
        status=message_status,
        priority=priority,
        message_type=message_type,
        sort=sort,
        page=page,
        limit=limit,
    )
    return paginated_response([m.to_dict() for m in messages], page, limit, total)


@router.get("/stats", summary="Contact message statistics")
async def contact_stats(
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    return success_response(await contact_service.get_statistics(SOURCE))


@router.get("/{message_id}", summary="Get a contact message")
async def get_contact(
    message_id: UUID,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    message = await contact_service.get_message(message_id, SOURCE)
    return success_response(message.to_dict())


@router.put("/{message_id}", summary="Triage a contact message")
async def update_contact(
    message_id: UUID,
    update_data: MessageUpdate,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    message = await contact_service.update_message(message_id, update_data, SOURCE)
    return success_response(message.to_dict(), message="Contact updated successfully")


@router.post("/{message_id}/reply", status_code=status.HTTP_201_CREATED, summary="Reply to a contact message")
async def reply_to_contact(
    message_id: UUID,
    reply_data: ReplyRequest,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    reply = await contact_service.reply(message_id, admin, reply_data.message, SOURCE)
    return success_response(reply.to_dict(), message="Reply sent successfully")


@router.put("/{message_id}/read", summary="Mark a contact message as read")
async def mark_contact_read(
    message_id: UUID,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    message = await contact_service.mark_as_read(message_id, SOURCE)
    return success_response(message.to_dict(), message="Message marked as read")


@router.delete("/{message_id}", summary="Delete a contact message")
async def delete_contact(
    message_id: UUID,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    await contact_service.delete_message(message_id, SOURCE)
    return success_response(message="Contact deleted successfully")
