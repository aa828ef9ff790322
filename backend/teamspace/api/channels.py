from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from teamspace.api.channel_categories import get_category_for_business
from teamspace.api.deps import require_business_admin, require_business_member
from teamspace.database import get_db
from teamspace.models.business_membership import BusinessMembership
from teamspace.models.channel import Channel
from teamspace.schemas.channel import ChannelCreate, ChannelResponse, ChannelUpdate
from teamspace.services import activity_log_service as activity

router = APIRouter(prefix="/businesses/{business_id}/channels", tags=["channels"])


def _get_channel_for_business(channel_id: str, business_id: str, db: Session) -> Channel:
    """
    Fetch a channel and verify it belongs to the given business.
    Raises 404 if not found or if the channel belongs to a different business,
    so members of one business cannot reach another's channels by id.
    """
    channel = db.query(Channel).filter(Channel.id == channel_id, Channel.business_id == business_id).first()
    if not channel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    return channel


@router.get("", response_model=list[ChannelResponse])
async def list_channels(
    business_id: str,
    category_id: str | None = Query(default=None),
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    query = db.query(Channel).filter(Channel.business_id == business_id)
    if category_id is not None:
        query = query.filter(Channel.category_id == category_id)
    return query.order_by(Channel.order, Channel.name).all()


@router.post("", response_model=ChannelResponse, status_code=201)
async def create_channel(
    business_id: str,
    data: ChannelCreate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    if data.category_id is not None:
        get_category_for_business(data.category_id, business_id, db)

    channel = Channel(
        business_id=business_id,
        category_id=data.category_id,
        name=data.name,
        type=data.type,
        order=data.order,
    )
    db.add(channel)
    db.commit()
    db.refresh(channel)

    activity.log_activity(db, request, membership.user_id, activity.CHANNEL_CREATE, 201, business_id=business_id)
    return channel


@router.get("/{channel_id}", response_model=ChannelResponse)
async def get_channel(
    business_id: str,
    channel_id: str,
    membership: BusinessMembership = Depends(require_business_member),
    db: Session = Depends(get_db),
):
    return _get_channel_for_business(channel_id, business_id, db)


@router.patch("/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    business_id: str,
    channel_id: str,
    data: ChannelUpdate,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    channel = _get_channel_for_business(channel_id, business_id, db)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("category_id") is not None:
        get_category_for_business(update_data["category_id"], business_id, db)
    for field in ("name", "type", "order"):
        if update_data.get(field) is None:
            update_data.pop(field, None)

    for field, value in update_data.items():
        setattr(channel, field, value)
    db.commit()
    db.refresh(channel)

    activity.log_activity(db, request, membership.user_id, activity.CHANNEL_UPDATE, 200, business_id=business_id)
    return channel


@router.delete("/{channel_id}", status_code=204)
async def delete_channel(
    business_id: str,
    channel_id: str,
    request: Request,
    membership: BusinessMembership = Depends(require_business_admin),
    db: Session = Depends(get_db),
):
    """Delete a channel and its messages."""
    channel = _get_channel_for_business(channel_id, business_id, db)
    db.delete(channel)
    db.commit()

    activity.log_activity(db, request, membership.user_id, activity.CHANNEL_DELETE, 204, business_id=business_id)
