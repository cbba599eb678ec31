"""
Pydantic schemas for user administration requests.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from app.models.user import UserRole
from app.schemas.auth import MOBILE_PATTERN


class UserUpdate(BaseModel):
    """Owner or admin update of a user record; is_active is honoured for admins only."""

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, pattern=MOBILE_PATTERN)
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip() if v else v


class UserRoleUpdate(BaseModel):
    role: UserRole = Field(..., description="New role", examples=["agent"])


class UserStatusUpdate(BaseModel):
    is_active: bool = Field(..., description="Whether the account may sign in")
