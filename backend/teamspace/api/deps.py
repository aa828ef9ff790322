from collections.abc import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from teamspace.database import get_db
from teamspace.models.business import Business
from teamspace.models.business_membership import MANAGER_ROLES, ROLE_OWNER, BusinessMembership
from teamspace.models.user import User
from teamspace.services import auth_service

bearer = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    user = auth_service.get_user_from_token(credentials.credentials, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials")
    return user


def require_business_member(
    business_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BusinessMembership:
    """
    Resolve the caller's membership in business_id.

    404 when the business does not exist, 403 when the caller is not in it.
    The returned record carries the caller's role for the checks below.
    """
    if db.get(Business, business_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")

    membership = BusinessMembership.find(db, business_id, current_user.id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a member of this business")
    return membership


def _role_guard(roles: tuple[str, ...], detail: str) -> Callable[..., BusinessMembership]:
    def guard(membership: BusinessMembership = Depends(require_business_member)) -> BusinessMembership:
        if membership.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return membership

    return guard


require_business_admin = _role_guard(MANAGER_ROLES, "Admin access required")
require_business_owner = _role_guard((ROLE_OWNER,), "Owner access required")


def require_site_admin(current_user: User = Depends(get_current_user)) -> User:
    # is_site_admin is only ever set directly in the database
    if not current_user.is_site_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Site admin access required")
    return current_user
