from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    username = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    avatar_url = Column(String(500), nullable=True)
    status = Column(String(100), default="online")
    is_active = Column(Boolean, default=True)
    # Site-level flag, set directly in the database, never via API.
    # Grants read access to the deployment-wide activity log.
    is_site_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    memberships = relationship("BusinessMembership", back_populates="user", cascade="all, delete-orphan")

    @property
    def business_ids(self) -> list[str]:
        return [m.business_id for m in self.memberships]
