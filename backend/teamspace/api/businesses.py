from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from teamspace.api.deps import (
    get_current_user,
    require_business_admin,
    require_business_member,
    require_business_owner,
)
from teamspace.database import get_db
from teamspace.models.business import DEFAULT_SETTINGS, Business
from teamspace.models.business_membership import ROLE_ADMIN, ROLE_OWNER, BusinessMembership
from teamspace.models.user import User
from teamspace.schemas.business import (
    BusinessCreate,
    BusinessMembershipResponse,
    BusinessResponse,
    BusinessUpdate,
    MemberAdd,
    MemberRoleUpdate,
)
from teamspace.services import activity_log_service as activity

router = APIRouter(prefix="/businesses", tags=["businesses"])


def _business_response(business: Business, role: str | None) -> BusinessResponse:
    response = BusinessResponse.model_validate(business)
    response.member_count = len(business.memberships)
    response.current_user_role = role
    return response


def _member_response(m: BusinessMembership) -> BusinessMembershipResponse:
    return BusinessMembershipResponse(
        user_id=m.user_id,
        username=m.user.username,
        avatar_url=m.user.avatar_url,
        role=m.role,
        joined_at=m.joined_at,
    )


def _get_membership(db: Session, business_id: str, user_id: str) -> BusinessMembership:
    target = BusinessMembership.find(db, business_id, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return target


@router.get("", response_model=list[BusinessResponse])
async def list_my_businesses(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Return all businesses the current user belongs to."""
    memberships = db.query(BusinessMembership).filter(BusinessMembership.user_id == current_user.id).all()
    role_by_business = {m.business_id: m.role for m in memberships}

    businesses = db.query(Business).filter(Business.id.in_(list(role_by_business))).order_by(Business.name).all()
    return [_business_response(b, role_by_business.get(b.id)) for b in businesses]


@router.post("", response_model=BusinessResponse, status_code=201)
async def create_business(
    data: BusinessCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new business. Creator becomes owner and first member."""
    business = Business(
        name=data.name,
        owner_id=current_user.id,
        avatar=data.avatar,
        settings=data.settings.model_dump() if data.settings else dict(DEFAULT_SETTINGS),
    )
    db.add(business)
    db.flush()  # get business.id before adding membership

    db.add(BusinessMembership(business_id=business.id, user_id=current_user.id, role=ROLE_OWNER))
    db.commit()
    db.refresh(business)

    activity.log_activity(db, request, current_user.id, activity.BUSINESS_CREATE, 201, business_id=business.id)
    return _business_response(business, ROLE_OWNER)


@router.get("/{business_id}", response_model=BusinessResponse)
async def get_business(
    business_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    """Get business details. Membership required."""
    business = db.query(Business).filter(Business.id == business_id).first()
    return _business_response(business, membership.role)


@router.patch("/{business_id}", response_model=BusinessResponse)
async def update_business(
    business_id: str,
    data: BusinessUpdate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Update name, avatar or settings. Admin or owner only."""
    business = db.query(Business).filter(Business.id == business_id).first()

    if data.name is not None:
        business.name = data.name
    if data.avatar is not None:
        business.avatar = data.avatar
    if data.settings is not None:
        business.settings = data.settings.model_dump()

    db.commit()
    db.refresh(business)

    activity.log_activity(db, request, membership.user_id, activity.BUSINESS_UPDATE, 200, business_id=business_id)
    return _business_response(business, membership.role)


@router.delete("/{business_id}", status_code=204)
async def delete_business(
    business_id: str,
    request: Request,
    membership: BusinessMembership = Depends(require_business_owner),
    db: Session = Depends(get_db),
):
    """Delete business with its categories, channels and messages. Owner only."""
    user_id = membership.user_id
    business = db.query(Business).filter(Business.id == business_id).first()
    db.delete(business)
    db.commit()

    activity.log_activity(db, request, user_id, activity.BUSINESS_DELETE, 204, business_id=business_id)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/{business_id}/members", response_model=list[BusinessMembershipResponse])
async def list_members(
    business_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    """List all members of this business. Membership required."""
    memberships = (
        db.query(BusinessMembership)
        .filter(BusinessMembership.business_id == business_id)
        .order_by(BusinessMembership.joined_at, BusinessMembership.id)
        .all()
    )
    return [_member_response(m) for m in memberships]


@router.post("/{business_id}/members", response_model=BusinessMembershipResponse, status_code=201)
async def add_member(
    business_id: str,
    data: MemberAdd,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Add an existing user to the business. Admin or owner only."""
    user = db.query(User).filter(User.id == data.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if BusinessMembership.find(db, business_id, data.user_id) is not None:
        raise HTTPException(status_code=409, detail="User is already a member of this business")

    target = BusinessMembership(business_id=business_id, user_id=data.user_id, role=data.role)
    db.add(target)
    db.commit()
    db.refresh(target)

    activity.log_activity(db, request, membership.user_id, activity.MEMBER_ADD, 201, business_id=business_id)
    return _member_response(target)


@router.patch("/{business_id}/members/{target_user_id}", response_model=BusinessMembershipResponse)
async def update_member_role(
    business_id: str,
    target_user_id: str,
    data: MemberRoleUpdate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_owner),
    db: Session = Depends(get_db),
):
    """Promote or demote a member. Owner only; the owner's own role is fixed."""
    target = _get_membership(db, business_id, target_user_id)
    if target.role == ROLE_OWNER:
        raise HTTPException(status_code=403, detail="The business owner cannot be demoted")

    target.role = data.role
    db.commit()
    db.refresh(target)

    activity.log_activity(db, request, membership.user_id, activity.MEMBER_ROLE_CHANGE, 200, business_id=business_id)
    return _member_response(target)


@router.delete("/{business_id}/members/{target_user_id}", status_code=204)
async def remove_member(
    business_id: str,
    target_user_id: str,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Remove a member. Admin or owner only. Cannot remove the owner."""
    target = _get_membership(db, business_id, target_user_id)
    if target.role == ROLE_OWNER:
        raise HTTPException(status_code=403, detail="The business owner cannot be removed")
    # Admins cannot remove other admins, only the owner can
    if target.role == ROLE_ADMIN and membership.role != ROLE_OWNER:
        raise HTTPException(status_code=403, detail="Only the owner can remove an admin")
    db.delete(target)
    db.commit()

    activity.log_activity(db, request, membership.user_id, activity.MEMBER_REMOVE, 204, business_id=business_id)
