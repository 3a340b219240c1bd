"""Pydantic schemas for API validation."""

from dashboard.schemas.admin import UserStateUpdate
from dashboard.schemas.oauth import UserAuthInfoResponse
from dashboard.schemas.users import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignUpRequest,
    SignUpResponse,
    StatusResponse,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    VerifyEmailRequest,
)

__all__ = [
    "ForgotPasswordRequest",
    "LoginRequest",
    "ResetPasswordRequest",
    "SignUpRequest",
    "SignUpResponse",
    "StatusResponse",
    "UpdatePasswordRequest",
    "UpdateProfileRequest",
    "UserAuthInfoResponse",
    "UserResponse",
    "UserStateUpdate",
    "VerifyEmailRequest",
]
