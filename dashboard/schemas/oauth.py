"""Schemas for the OAuth connect endpoints."""

from datetime import datetime

from pydantic import BaseModel


class UserAuthInfoResponse(BaseModel):
    """Linked provider account. The provider access token is never returned."""

    user_id: str
    oauth_provider: str
    username: str
    email: str
    name: str
    avatar_url: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
