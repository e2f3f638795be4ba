from pydantic import Field
from typing import Optional
from datetime import datetime

from reefing.core.responses import CamelModel


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, max_length=200)


class User(CamelModel):
    """A users row. Carries the internal image key; never returned as-is."""

    id: str
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    identity_provider_id: str
    profile_image_key: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    identity_provider_id: str
    profile_image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
