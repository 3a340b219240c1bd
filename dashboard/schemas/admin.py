"""Schemas for admin endpoints."""

from typing import Literal

from pydantic import BaseModel


class UserStateUpdate(BaseModel):
    """Schema for locking or unlocking a user account."""

    state: Literal["active", "locked"]
