from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base


class ChannelCategory(Base):
    __tablename__ = "channel_categories"

    id = Column(String(24), primary_key=True, default=new_object_id)
    business_id = Column(String(24), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship("Business", back_populates="categories")
    channels = relationship("Channel", back_populates="category")
