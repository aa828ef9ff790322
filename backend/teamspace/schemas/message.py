"""
Message payload records for the /ws/messages WebSocket.

Field names are camelCase on the wire (``userId``, ``messageType``...) and
snake_case in Python; ``populate_by_name`` accepts both on input.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from teamspace.core.ids import is_valid_object_id

MessageType = Literal["text", "image", "file", "voice"]

_WIRE_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


def _object_id(value: str | None, label: str) -> str | None:
    if value is not None and not is_valid_object_id(value):
        raise ValueError(f"Invalid {label}")
    return value


class MediaMetadata(BaseModel):
    filename: str = ""
    size: int = Field(0, ge=0)
    width: int | None = Field(None, ge=0)
    height: int | None = Field(None, ge=0)

    model_config = _WIRE_CONFIG


# ── Inbound payloads ──────────────────────────────────────────────────────────


class MessageCreatePayload(BaseModel):
    # Optional: the connection's authenticated user is the author.
    user_id: str | None = None
    content: str = Field("", max_length=4000)
    message_type: MessageType = "text"
    media_path: str | None = Field(None, max_length=500)
    media_metadata: MediaMetadata | None = None

    model_config = _WIRE_CONFIG

    @field_validator("user_id")
    @classmethod
    def valid_user_id(cls, v: str | None) -> str | None:
        return _object_id(v, "user ID")


class MessageHistoryPayload(BaseModel):
    # 0 means "use the default"
    limit: int = Field(0, ge=0)
    skip: int = Field(0, ge=0)

    model_config = _WIRE_CONFIG


class MessageUpdatePayload(BaseModel):
    id: str
    content: str | None = Field(None, max_length=4000)
    message_type: MessageType | Literal[""] | None = None
    media_path: str | None = Field(None, max_length=500)
    media_metadata: MediaMetadata | None = None
    is_pinned: bool | None = None

    model_config = _WIRE_CONFIG

    @field_validator("id")
    @classmethod
    def valid_id(cls, v: str) -> str:
        return _object_id(v, "message ID")

    def changes(self) -> dict:
        """Column values to write. Empty strings count as absent, the same
        as missing keys; only ``isPinned`` can be set to a falsy value."""
        values: dict = {}
        if self.content:
            values["content"] = self.content
        if self.message_type:
            values["message_type"] = self.message_type
        if self.media_path:
            values["media_path"] = self.media_path
        if self.media_metadata is not None:
            values["media_metadata"] = self.media_metadata.model_dump()
        if self.is_pinned is not None:
            values["is_pinned"] = self.is_pinned
        return values


class MessageDeletePayload(BaseModel):
    id: str

    model_config = _WIRE_CONFIG

    @field_validator("id")
    @classmethod
    def valid_id(cls, v: str) -> str:
        return _object_id(v, "message ID")


class ReactionPayload(BaseModel):
    message_id: str
    user_id: str | None = None
    emoji: str = Field(..., min_length=1, max_length=50)

    model_config = _WIRE_CONFIG

    @field_validator("message_id")
    @classmethod
    def valid_message_id(cls, v: str) -> str:
        return _object_id(v, "message ID")

    @field_validator("user_id")
    @classmethod
    def valid_user_id(cls, v: str | None) -> str | None:
        return _object_id(v, "user ID")


# ── Outbound records ──────────────────────────────────────────────────────────


class ReactionResponse(BaseModel):
    emoji: str
    user_ids: list[str]

    model_config = _WIRE_CONFIG


class MessageResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    content: str
    message_type: str
    media_path: str | None = None
    media_metadata: MediaMetadata | None = None
    created_at: datetime
    updated_at: datetime | None = None
    is_pinned: bool
    reactions: list[ReactionResponse] = []

    model_config = _WIRE_CONFIG

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MessageDeletedResponse(BaseModel):
    id: str

    model_config = _WIRE_CONFIG
