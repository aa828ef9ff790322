from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base

# Valid role values
ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
VALID_ROLES = (ROLE_OWNER, ROLE_ADMIN, ROLE_MEMBER)
MANAGER_ROLES = (ROLE_OWNER, ROLE_ADMIN)


class BusinessMembership(Base):
    """Join table between User and Business, with role information."""

    __tablename__ = "business_memberships"

    id = Column(String(24), primary_key=True, default=new_object_id)
    business_id = Column(String(24), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # role: "owner" | "admin" | "member"
    role = Column(String(20), nullable=False, default=ROLE_MEMBER)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    business = relationship("Business", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (UniqueConstraint("business_id", "user_id", name="unique_business_member"),)

    @classmethod
    def find(cls, db, business_id: str, user_id: str) -> "BusinessMembership | None":
        return db.query(cls).filter(cls.business_id == business_id, cls.user_id == user_id).first()
