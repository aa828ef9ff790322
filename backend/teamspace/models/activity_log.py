from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from teamspace.core.ids import new_object_id
from teamspace.database import Base


class ActivityLog(Base):
    """Append-only audit row for one administrative action."""

    __tablename__ = "activity_logs"

    id = Column(String(24), primary_key=True, default=new_object_id)
    # Plain strings, not foreign keys: log rows outlive the users and
    # businesses they mention.
    user_id = Column(String(24), nullable=False, index=True)
    business_id = Column(String(24), nullable=True, index=True)
    action = Column(String(100), nullable=False)
    method = Column(String(10), nullable=False)
    endpoint = Column(String(500), nullable=False)
    status_code = Column(Integer, nullable=False)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
