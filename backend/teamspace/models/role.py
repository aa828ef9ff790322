from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base


class BusinessRole(Base):
    """A named custom role inside a business.

    permissions maps a resource name to the actions granted on it, e.g.
    {"channels": ["read", "write"]}. Access checks still go through the
    owner/admin/member membership role; custom roles are labels with a
    permission map attached for clients to display and edit.
    """

    __tablename__ = "business_roles"

    id = Column(String(24), primary_key=True, default=new_object_id)
    business_id = Column(String(24), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    permissions = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    business = relationship("Business", back_populates="roles")

    __table_args__ = (UniqueConstraint("business_id", "name", name="unique_role_name_per_business"),)
