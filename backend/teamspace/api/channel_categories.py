from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from teamspace.api.deps import require_business_admin, require_business_member
from teamspace.database import get_db
from teamspace.models.business_membership import BusinessMembership
from teamspace.models.channel_category import ChannelCategory
from teamspace.schemas.channel_category import (
    ChannelCategoryCreate,
    ChannelCategoryResponse,
    ChannelCategoryUpdate,
)
from teamspace.services import activity_log_service as activity

router = APIRouter(prefix="/businesses/{business_id}/categories", tags=["categories"])


def get_category_for_business(category_id: str, business_id: str, db: Session) -> ChannelCategory:
    """
    Fetch a category and verify it belongs to the given business.
    Raises 404 if not found or if it belongs to a different business.
    """
    category = (
        db.query(ChannelCategory)
        .filter(ChannelCategory.id == category_id, ChannelCategory.business_id == business_id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


@router.get("", response_model=list[ChannelCategoryResponse])
async def list_categories(
    business_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    return (
        db.query(ChannelCategory)
        .filter(ChannelCategory.business_id == business_id)
        .order_by(ChannelCategory.name)
        .all()
    )


@router.post("", response_model=ChannelCategoryResponse, status_code=201)
async def create_category(
    business_id: str,
    data: ChannelCategoryCreate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    category = ChannelCategory(business_id=business_id, name=data.name)
    db.add(category)
    db.commit()
    db.refresh(category)

    activity.log_activity(db, request, membership.user_id, activity.CATEGORY_CREATE, 201, business_id=business_id)
    return category


@router.get("/{category_id}", response_model=ChannelCategoryResponse)
async def get_category(
    business_id: str,
    category_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    return get_category_for_business(category_id, business_id, db)


@router.patch("/{category_id}", response_model=ChannelCategoryResponse)
async def update_category(
    business_id: str,
    category_id: str,
    data: ChannelCategoryUpdate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    category = get_category_for_business(category_id, business_id, db)
    if data.name is not None:
        category.name = data.name
    db.commit()
    db.refresh(category)

    activity.log_activity(db, request, membership.user_id, activity.CATEGORY_UPDATE, 200, business_id=business_id)
    return category


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    business_id: str,
    category_id: str,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Delete a category. Its channels stay, detached (category_id = null)."""
    category = get_category_for_business(category_id, business_id, db)
    for channel in category.channels:
        channel.category_id = None
    db.delete(category)
    db.commit()

    activity.log_activity(db, request, membership.user_id, activity.CATEGORY_DELETE, 204, business_id=business_id)
