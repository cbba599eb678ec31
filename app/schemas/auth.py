"""
Pydantic schemas for authentication requests.
Handles registration, login, profile, password change and password reset payloads.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from app.models.user import UserRole, MIN_PASSWORD_LENGTH

MOBILE_PATTERN = r"^\+?[0-9]{10,15}$"


def _normalize_email(v: Optional[str]) -> Optional[str]:
    return v.lower().strip() if v else v


class RegisterRequest(BaseModel):
    """Registration request; at least one of email or mobile is required."""

    name: str = Field(
        ...,
        min_length=2,
        max_length=50,
        description="User's display name",
        examples=["Asha Patel"]
    )
    email: Optional[EmailStr] = Field(
        None,
        description="Email address",
        examples=["asha@example.com"]
    )
    mobile: Optional[str] = Field(
        None,
        pattern=MOBILE_PATTERN,
        description="Mobile number (10-15 digits, optional leading +)",
        examples=["9876543210"]
    )
    password: str = Field(
        ...,
        min_length=MIN_PASSWORD_LENGTH,
        max_length=128,
        description=f"Password (minimum {MIN_PASSWORD_LENGTH} characters)"
    )
    role: UserRole = Field(
        UserRole.USER,
        description="Requested role; admin accounts cannot self-register",
        examples=["user"]
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("role")
    @classmethod
    def forbid_admin(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be registered")
        return v

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.email and not self.mobile:
            raise ValueError("Either email or mobile is required")
        return self


class LoginRequest(BaseModel):
    """Login with email or mobile plus password."""

    email: Optional[EmailStr] = Field(None, examples=["asha@example.com"])
    mobile: Optional[str] = Field(None, examples=["9876543210"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.email and not self.mobile:
            raise ValueError("Please provide email or mobile")
        return self


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own profile."""

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, pattern=MOBILE_PATTERN)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
