"""
Pydantic schemas for request validation and response envelopes.
"""

from .common import PaginationMeta, success_response, paginated_response

from .auth import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdateRequest,
    PasswordUpdateRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)

from .user import UserUpdate, UserRoleUpdate, UserStatusUpdate

from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyFilters,
    RejectRequest,
    GovDetails,
    ContactInfo,
)

from .agent import (
    AgentCreate,
    AgentUpdate,
    ReviewCreate,
    ReviewUpdate,
    CompanyInfo,
    SocialMedia,
    Achievement,
)

from .message import ContactCreate, InquiryCreate, MessageUpdate, ReplyRequest

__all__ = [
    "PaginationMeta",
    "success_response",
    "paginated_response",
    "RegisterRequest",
    "LoginRequest",
    "ProfileUpdateRequest",
    "PasswordUpdateRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "UserUpdate",
    "UserRoleUpdate",
    "UserStatusUpdate",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyFilters",
    "RejectRequest",
    "GovDetails",
    "ContactInfo",
    "AgentCreate",
    "AgentUpdate",
    "ReviewCreate",
    "ReviewUpdate",
    "CompanyInfo",
    "SocialMedia",
    "Achievement",
    "ContactCreate",
    "InquiryCreate",
    "MessageUpdate",
    "ReplyRequest",
]
