import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from teamspace.api.deps import get_current_user
from teamspace.config import settings
from teamspace.database import get_db
from teamspace.models.user import User
from teamspace.schemas.token import Token
from teamspace.schemas.user import UserCreate, UserLogin, UserResponse
from teamspace.services import activity_log_service as activity
from teamspace.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(user: User) -> Token:
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return Token(
        access_token=auth_service.create_access_token(user, expires_delta=lifetime),
        token_type="bearer",
        expires_in=int(lifetime.total_seconds()),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=Token)
async def register(user_in: UserCreate, request: Request, db: Session = Depends(get_db)) -> Token:
    taken = (
        db.query(User)
        .filter((User.username == user_in.username) | (User.email == user_in.email))
        .first()
    )
    if taken is not None:
        field = "Username" if taken.username == user_in.username else "Email"
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{field} already registered")

    user = User(
        username=user_in.username,
        email=user_in.email,
        avatar_url=user_in.avatar_url,
        hashed_password=auth_service.hash_password(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    activity.log_activity(db, request, user.id, activity.USER_REGISTER, 200)
    return _issue_token(user)


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, request: Request, db: Session = Depends(get_db)) -> Token:
    if credentials.email:
        user = db.query(User).filter(User.email == credentials.email).first()
    else:
        user = db.query(User).filter(User.username == credentials.username).first()

    if user is None:
        logger.info("Login failed for unknown account %s", credentials.email or credentials.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not auth_service.verify_password(credentials.password, user.hashed_password):
        activity.log_activity(db, request, user.id, activity.LOGIN_FAILED, 401)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.is_active:
        activity.log_activity(db, request, user.id, activity.LOGIN_FAILED, 403)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    activity.log_activity(db, request, user.id, activity.LOGIN, 200)
    return _issue_token(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
