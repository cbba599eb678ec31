"""
Authentication API endpoints for registration, login, profile and password management.
Tokens are stateless JWTs; logout is acknowledged only.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from app.models.user import User
from app.services.auth import AuthService
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdateRequest,
    PasswordUpdateRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from app.schemas.common import success_response
from app.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _session_payload(user: User, token: str) -> dict:
    return {"user": user.to_dict(), "token": token}


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create a user or agent account and return a session token"
)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    user, token = await auth_service.register(register_data)
    return success_response(_session_payload(user, token), message="Registration successful")


@router.post(
    "/login",
    summary="User login",
    description="Authenticate with email or mobile and password"
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate user and return a JWT.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, token = await auth_service.login(login_data)
    return success_response(_session_payload(user, token), message="Login successful")


@router.get("/me", summary="Get current user")
async def get_me(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Current user with favorites and, for agents, the agent profile."""
    return success_response(await auth_service.get_profile(current_user))


@router.put("/profile", summary="Update own profile")
async def update_profile(
    profile_data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    user = await auth_service.update_profile(current_user, profile_data)
    return success_response(user.to_dict(), message="Profile updated successfully")


@router.put("/password", summary="Change password")
async def update_password(
    password_data: PasswordUpdateRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    user, token = await auth_service.update_password(current_user, password_data)
    return success_response(_session_payload(user, token), message="Password updated successfully")


@router.post("/forgot-password", summary="Request a password reset email")
async def forgot_password(
    forgot_data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    await auth_service.forgot_password(forgot_data.email)
    return success_response(message="Password reset email sent")


@router.put("/reset-password/{token}", summary="Reset password with an emailed token")
async def reset_password(
    token: str,
    reset_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    user, session_token = await auth_service.reset_password(token, reset_data.password)
    return success_response(_session_payload(user, session_token), message="Password reset successful")


@router.post("/logout", summary="User logout")
async def logout(current_user: User = Depends(get_current_user)):
    """
    Logout user.

    Tokens are stateless, so the client discards its token; this only
    confirms the caller was authenticated.
    """
    return success_response(message="Logged out successfully")


@router.post("/avatar", summary="Upload profile picture")
async def upload_avatar(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    user = await auth_service.upload_avatar(current_user, avatar)
    return success_response(user.to_dict(), message="Avatar uploaded successfully")
