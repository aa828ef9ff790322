from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from teamspace.core.events import MESSAGE_TYPE_TEXT
from teamspace.core.ids import new_object_id
from teamspace.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(24), primary_key=True, default=new_object_id)
    channel_id = Column(String(24), ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False, default="")
    # "text" | "image" | "file" | "voice"
    message_type = Column(String(20), nullable=False, default=MESSAGE_TYPE_TEXT)
    media_path = Column(String(500), nullable=True)
    # {"filename": str, "size": int, "width": int, "height": int}
    media_metadata = Column(JSON, nullable=True)
    # Set in Python so history ordering does not depend on server clock resolution.
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    is_pinned = Column(Boolean, nullable=False, default=False)

    # Relationships
    channel = relationship("Channel", back_populates="messages")
    user = relationship("User")
    reactions = relationship(
        "MessageReaction",
        back_populates="message",
        cascade="all, delete-orphan",
        order_by="MessageReaction.id",
    )
