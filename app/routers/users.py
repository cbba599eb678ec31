"""
User administration API endpoints.
Listing, statistics, role changes and deletion are admin-only; reads and
updates are also open to the user themselves.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
from uuid import UUID

from app.models.user import User, UserRole
from app.services.user import UserService
from app.schemas.user import UserUpdate, UserRoleUpdate
from app.schemas.common import success_response, paginated_response
from app.utils.dependencies import get_current_user, get_current_admin_user, get_user_service
from app.config import settings


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", summary="List users")
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    sort: str = Query("newest", description="newest, oldest or name"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    users, total = await user_service.list_users(role=role, is_active=is_active, sort=sort, page=page, limit=limit)
    return paginated_response([u.to_dict() for u in users], page, limit, total)


@router.get("/stats", summary="User statistics")
async def user_stats(
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    return success_response(await user_service.get_statistics())


@router.get("/role/{role}", summary="Users with a given role")
async def users_by_role(
    role: UserRole,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    users, total = await user_service.list_users(role=role, page=page, limit=limit)
    return paginated_response([u.to_dict() for u in users], page, limit, total)


@router.get("/{user_id}", summary="Get a user")
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.get_user(user_id, current_user)
    return success_response(user.to_dict())


@router.put("/{user_id}", summary="Update a user")
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.update_user(user_id, user_data, current_user)
    return success_response(user.to_dict(), message="User updated successfully")


@router.put("/{user_id}/role", summary="Change a user's role")
async def update_user_role(
    user_id: UUID,
    role_data: UserRoleUpdate,
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.update_role(user_id, role_data.role, admin)
    return success_response(user.to_dict(), message="User role updated successfully")


@router.delete("/{user_id}", summary="Delete a user")
async def delete_user(
    user_id: UUID,
    admin: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    await user_service.delete_user(user_id, admin)
    return success_response(message="User deleted successfully")
