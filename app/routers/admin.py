"""
Admin API endpoints: property moderation, dashboard statistics and account control.
Every route requires the admin role.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
from uuid import UUID

from app.models.user import User, UserRole
from app.models.property import PropertyType, PropertyStatus, ApprovalStatus
from app.services.moderation import ModerationService
from app.services.property import PropertyService
from app.services.user import UserService
from app.schemas.property import PropertyFilters, RejectRequest
from app.schemas.user import UserStatusUpdate
from app.schemas.common import success_response, paginated_response
from app.utils.dependencies import (
    get_current_admin_user,
    get_moderation_service,
    get_property_service,
    get_user_service
)
from app.config import settings


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_admin_user)]
)


@router.get("/properties/pending", summary="Listings awaiting moderation")
async def pending_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    properties, total = await moderation_service.list_pending(page=page, limit=limit)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/properties", summary="All listings in every moderation state")
async def all_properties(
    listing_status: Optional[PropertyStatus] = Query(None, alias="status"),
    approval_status: Optional[ApprovalStatus] = Query(None),
    property_type: Optional[PropertyType] = Query(None, alias="type"),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    property_service: PropertyService = Depends(get_property_service)
):
    filters = PropertyFilters(status=listing_status, approval_status=approval_status, type=property_type)
    properties, total = await property_service.list_properties(
        filters, page=page, limit=limit, sort=sort, public_only=False
    )
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/properties/stats", summary="Moderation dashboard statistics")
async def property_stats(moderation_service: ModerationService = Depends(get_moderation_service)):
    return success_response(await moderation_service.get_statistics())


@router.put("/properties/{property_id}/approve", summary="Approve and publish a listing")
async def approve_property(
    property_id: UUID,
    admin: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    property_obj = await moderation_service.approve(property_id, admin)
    return success_response(property_obj.to_dict(), message="Property approved successfully")


@router.put("/properties/{property_id}/reject", summary="Reject and unpublish a listing")
async def reject_property(
    property_id: UUID,
    reject_data: RejectRequest,
    admin: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
):
    property_obj = await moderation_service.reject(property_id, admin, reject_data.reason)
    return success_response(property_obj.to_dict(), message="Property rejected successfully")


@router.get("/users", summary="List users")
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    user_service: UserService = Depends(get_user_service)
):
    users, total = await user_service.list_users(role=role, is_active=is_active, sort=sort, page=page, limit=limit)
    return paginated_response([u.to_dict() for u in users], page, limit, total)


@router.put("/users/{user_id}/status", summary="Activate or deactivate an account")
async def update_user_status(
    user_id: UUID,
    status_data: UserStatusUpdate,
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.update_status(user_id, status_data.is_active, admin)
    state = "activated" if user.is_active else "deactivated"
    return success_response(user.to_dict(), message=f"User {state} successfully")


@router.delete("/users/{user_id}", summary="Delete an account")
async def delete_user(
    user_id: UUID,
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    await user_service.delete_user(user_id, admin)
    return success_response(message="User deleted successfully")
