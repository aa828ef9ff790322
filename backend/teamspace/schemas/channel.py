from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ChannelType = Literal["messages", "voices", "drawings", "documents", "databases", "reports"]


class ChannelCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    type: ChannelType = "messages"
    category_id: str | None = None
    order: int = Field(0, ge=0)


class ChannelUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)
    type: ChannelType | None = None
    # Explicit null detaches the channel from its category.
    category_id: str | None = None
    order: int | None = Field(None, ge=0)


class ChannelResponse(BaseModel):
    id: str
    business_id: str
    category_id: str | None = None
    name: str
    type: str
    order: int
    created_at: datetime

    model_config = {"from_attributes": True}
