"""Schemas for the user account endpoints.

Field-level rules (password strength, email form) are checked in the
service layer so that every caller, including the CLI, gets the same
validation. These models only describe the JSON shape.
"""

from datetime import datetime

from pydantic import BaseModel


class SignUpRequest(BaseModel):
    """Schema for user sign-up."""

    email: str
    password: str
    first_name: str = ""
    last_name: str = ""


class LoginRequest(BaseModel):
    """Schema for user login."""

    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    """Schema for completing a password reset with an emailed token."""

    token: str
    password: str


class VerifyEmailRequest(BaseModel):
    token: str


class UpdatePasswordRequest(BaseModel):
    """Schema for changing the password of the logged-in user."""

    current_password: str
    new_password: str


class UpdateProfileRequest(BaseModel):
    """Schema for updating the logged-in user. Omitted fields are left alone."""

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class UserResponse(BaseModel):
    """Schema for a user in API responses.

    ``password`` is part of the shape clients expect and is always blank.
    """

    id: str
    email: str
    email_verified: bool
    first_name: str
    last_name: str
    state: str
    is_admin: bool = False
    password: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SignUpResponse(BaseModel):
    user: UserResponse


class StatusResponse(BaseModel):
    """Schema for simple acknowledgement responses."""

    status: str = "ok"
