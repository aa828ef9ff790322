from sqlalchemy import JSON, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base

DEFAULT_SETTINGS = {"theme": "light", "notifications": "all"}


class Business(Base):
    """A workspace. Users join businesses and see only the categories and
    channels belonging to the businesses they are members of."""

    __tablename__ = "businesses"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(100), nullable=False)
    owner_id = Column(String(24), ForeignKey("users.id"), nullable=False)
    avatar = Column(String(500), nullable=True)
    # {"theme": ..., "notifications": ...}
    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_SETTINGS))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    memberships = relationship("BusinessMembership", back_populates="business", cascade="all, delete-orphan")
    categories = relationship("ChannelCategory", back_populates="business", cascade="all, delete-orphan")
    channels = relationship("Channel", back_populates="business", cascade="all, delete-orphan")
    roles = relationship("BusinessRole", back_populates="business", cascade="all, delete-orphan")
