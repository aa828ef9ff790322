from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from teamspace.api.deps import require_business_admin, require_business_member
from teamspace.database import get_db
from teamspace.models.business_membership import BusinessMembership
from teamspace.models.role import BusinessRole
from teamspace.schemas.role import RoleCreate, RoleResponse, RoleUpdate
from teamspace.services import activity_log_service as activity

router = APIRouter(prefix="/businesses/{business_id}/roles", tags=["roles"])


def _get_role_for_business(role_id: str, business_id: str, db: Session) -> BusinessRole:
    role = db.query(BusinessRole).filter(BusinessRole.id == role_id, BusinessRole.business_id == business_id).first()
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role


def _check_name_free(name: str, business_id: str, db: Session, role_id: str | None = None) -> None:
    query = db.query(BusinessRole).filter(BusinessRole.business_id == business_id, BusinessRole.name == name)
    if role_id is not None:
        query = query.filter(BusinessRole.id != role_id)
    if query.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A role with this name already exists")


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    business_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    return db.query(BusinessRole).filter(BusinessRole.business_id == business_id).order_by(BusinessRole.name).all()


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    business_id: str,
    data: RoleCreate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    _check_name_free(data.name, business_id, db)

    role = BusinessRole(business_id=business_id, name=data.name, permissions=data.permissions)
    db.add(role)
    db.commit()
    db.refresh(role)

    activity.log_activity(db, request, membership.user_id, activity.ROLE_CREATE, 201, business_id=business_id)
    return role


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    business_id: str,
    role_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    return _get_role_for_business(role_id, business_id, db)


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    business_id: str,
    role_id: str,
    data: RoleUpdate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Rename a role or replace its whole permission map."""
    role = _get_role_for_business(role_id, business_id, db)
    update_data = {field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None}
    if not update_data:
        raise ValueError("No data to update")

    if "name" in update_data:
        _check_name_free(update_data["name"], business_id, db, role_id=role.id)
    for field, value in update_data.items():
        setattr(role, field, value)
    db.commit()
    db.refresh(role)

    activity.log_activity(db, request, membership.user_id, activity.ROLE_UPDATE, 200, business_id=business_id)
    return role


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    business_id: str,
    role_id: str,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    role = _get_role_for_business(role_id, business_id, db)
    db.delete(role)
    db.commit()

    activity.log_activity(db, request, membership.user_id, activity.ROLE_DELETE, 204, business_id=business_id)
