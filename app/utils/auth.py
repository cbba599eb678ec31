"""
Authentication utilities for JWT session tokens and password-reset tokens.
Session tokens are stateless: they carry the user id and role and expire on their own.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
from app.config import settings
from app.models.user import UserRole
import hashlib
import secrets
import uuid


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, role: Optional[str], exp: datetime):
        self.user_id = user_id
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            role=data.get("role"),
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def create_access_token(
    user_id: uuid.UUID,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed session token.

    Args:
        user_id: User's UUID
        role: User's role at issue time
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "role": role.value,
        "exp": expire,
        "iat": now,
        "type": "access"
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode a session token.

    Raises:
        JWTError: If the token is malformed, tampered with or expired
            (expiry surfaces as jose's ExpiredSignatureError)
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm]
    )

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")

    if not payload.get("sub") or not payload.get("exp"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)


def hash_reset_token(token: str) -> str:
    """Irreversible digest of a password-reset token; only this is stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token(expire_minutes: Optional[int] = None) -> Tuple[str, str, datetime]:
    """
    Generate a single-use password-reset token.

    Returns:
        Tuple of (cleartext token, stored hash, expiry)
    """
    token = secrets.token_hex(20)
    minutes = expire_minutes or settings.password_reset_expire_minutes
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return token, hash_reset_token(token), expires_at
