"""
Audit trail for administrative actions.

Call log_activity() after the action has been committed. Recording is
best-effort: a failure is logged and rolled back, never raised, so the
request that triggered it still succeeds.
"""

import logging

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from teamspace.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)

# Action names
BUSINESS_CREATE = "business.create"
BUSINESS_UPDATE = "business.update"
BUSINESS_DELETE = "business.delete"
MEMBER_ADD = "member.add"
MEMBER_ROLE_CHANGE = "member.role_change"
MEMBER_REMOVE = "member.remove"
CATEGORY_CREATE = "category.create"
CATEGORY_UPDATE = "category.update"
CATEGORY_DELETE = "category.delete"
CHANNEL_CREATE = "channel.create"
CHANNEL_UPDATE = "channel.update"
CHANNEL_DELETE = "channel.delete"
DATABASE_CREATE = "database.create"
DATABASE_UPDATE = "database.update"
DATABASE_DELETE = "database.delete"
ROLE_CREATE = "role.create"
ROLE_UPDATE = "role.update"
ROLE_DELETE = "role.delete"
USER_REGISTER = "user.register"
LOGIN = "auth.login"
LOGIN_FAILED = "auth.login_failed"


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def log_activity(
    db: Session,
    request: Request,
    user_id: str,
    action: str,
    status_code: int,
    business_id: str | None = None,
) -> ActivityLog | None:
    entry = ActivityLog(
        user_id=user_id,
        business_id=business_id,
        action=action,
        method=request.method,
        endpoint=request.url.path,
        status_code=status_code,
        ip_address=_client_ip(request),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to record activity %s by user %s: %s", action, user_id, exc)
        return None
    logger.info("Activity %s by user %s (business %s)", action, user_id, business_id)
    return entry
