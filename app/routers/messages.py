"""
Public inquiry API endpoints.
Anyone may submit an inquiry; admins list, read and delete them.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from uuid import UUID

from app.models.user import User
from app.models.message import MessageSource
from app.services.contact import ContactService
from app.schemas.message import InquiryCreate
from app.schemas.common import success_response, paginated_response
from app.middleware.request_context import get_client_ip
from app.utils.dependencies import get_current_admin_user, get_contact_service
from app.config import settings


router = APIRouter(prefix="/messages", tags=["Messages"])

SOURCE = MessageSource.INQUIRY


@router.post("", status_code=status.HTTP_201_CREATED, summary="Send an inquiry")
async def create_inquiry(
    inquiry_data: InquiryCreate,
    request: Request,
    contact_service: ContactService = Depends(get_contact_service)
):
    message = await contact_service.create_inquiry(
        inquiry_data,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )
    return success_response(message.to_dict(), message="Message sent successfully")


@router.get("", summary="List inquiries")
async def list_inquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    messages, total = await contact_service.list_messages(SOURCE, page=page, limit=limit)
    return paginated_response([m.to_dict() for m in messages], page, limit, total)


@router.get("/{message_id}", summary="Get an inquiry")
async def get_inquiry(
    message_id: UUID,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    message = await contact_service.get_message(message_id, SOURCE)
    return success_response(message.to_dict())


@router.delete("/{message_id}", summary="Delete an inquiry")
async def delete_inquiry(
    message_id: UUID,
    admin: User = Depends(get_current_admin_user),
    contact_service: ContactService = Depends(get_contact_service)
):
    await contact_service.delete_message(message_id, SOURCE)
    return success_response(message="Message deleted successfully")
