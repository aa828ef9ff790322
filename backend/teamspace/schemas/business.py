from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class BusinessSettings(BaseModel):
    theme: str = Field("light", max_length=50)
    notifications: str = Field("all", max_length=50)


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    avatar: str | None = Field(None, max_length=500)
    settings: BusinessSettings | None = None


class BusinessUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)
    avatar: str | None = Field(None, max_length=500)
    settings: BusinessSettings | None = None


class BusinessResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    avatar: str | None = None
    settings: BusinessSettings
    created_at: datetime
    updated_at: datetime | None = None
    # Computed fields, injected per-request, not stored as columns
    member_count: int | None = None
    current_user_role: str | None = None

    model_config = {"from_attributes": True}


class MemberAdd(BaseModel):
    user_id: str
    role: Literal["admin", "member"] = "member"


class MemberRoleUpdate(BaseModel):
    role: Literal["admin", "member"]


class BusinessMembershipResponse(BaseModel):
    user_id: str
    username: str
    avatar_url: str | None = None
    role: str
    joined_at: datetime | None = None

    model_config = {"from_attributes": True}
