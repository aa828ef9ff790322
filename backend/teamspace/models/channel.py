from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base

CHANNEL_TYPE_MESSAGES = "messages"
CHANNEL_TYPES = (CHANNEL_TYPE_MESSAGES, "voices", "drawings", "documents", "databases", "reports")


class Channel(Base):
    __tablename__ = "channels"

    id = Column(String(24), primary_key=True, default=new_object_id)
    business_id = Column(String(24), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    # Null when the channel sits outside any category (or its category was deleted).
    category_id = Column(String(24), ForeignKey("channel_categories.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default=CHANNEL_TYPE_MESSAGES)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    business = relationship("Business", back_populates="channels")
    category = relationship("ChannelCategory", back_populates="channels")
    messages = relationship("Message", back_populates="channel", cascade="all, delete-orphan")
    databases = relationship("WorkspaceDatabase", back_populates="channel", cascade="all, delete-orphan")
