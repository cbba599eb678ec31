"""
Service layer for business logic implementation.
"""

from .auth import AuthService
from .property import PropertyService, PropertyFiles
from .moderation import ModerationService
from .agent import AgentService
from .user import UserService
from .contact import ContactService
from .storage import StorageService
from .mail import MailService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "PropertyFiles",
    "ModerationService",
    "AgentService",
    "UserService",
    "ContactService",
    "StorageService",
    "MailService",
    "ErrorHandlerService",
]
