from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from teamspace.api.deps import require_business_admin, require_site_admin
from teamspace.database import get_db
from teamspace.models.activity_log import ActivityLog
from teamspace.models.business_membership import BusinessMembership
from teamspace.models.user import User
from teamspace.schemas.activity_log import ActivityLogResponse

router = APIRouter(tags=["activity-logs"])


@router.get("/businesses/{business_id}/activity-logs", response_model=list[ActivityLogResponse])
async def list_business_activity(
    business_id: str,
    limit: int = Query(default=50, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Newest first. Admin or owner only."""
    return (
        db.query(ActivityLog)
        .filter(ActivityLog.business_id == business_id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


@router.get("/activity-logs", response_model=list[ActivityLogResponse])
async def list_all_activity(
    limit: int = Query(default=50, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    admin: User = Depends(require_site_admin),
    db: Session = Depends(get_db),
):
    return (
        db.query(ActivityLog)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
