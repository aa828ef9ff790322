from datetime import datetime

from pydantic import BaseModel, Field


class ChannelCategoryCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)


class ChannelCategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)


class ChannelCategoryResponse(BaseModel):
    id: str
    business_id: str
    name: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
