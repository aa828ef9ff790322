"""
Password hashing and access tokens.

JWTs are only ever encoded and decoded here. The REST bearer dependency and
the message socket admission both go through get_user_from_token(), so a
token that works for one works for the other.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from teamspace.config import settings
from teamspace.models.user import User


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    issued = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": user.id,
        "email": user.email,
        "iss": settings.TOKEN_ISSUER,
        "iat": issued,
        "exp": issued + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Verified claims, or None for a bad signature, issuer or expiry."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], issuer=settings.TOKEN_ISSUER)
    except JWTError:
        return None


def get_user_from_token(token: str, db: Session) -> User | None:
    claims = decode_access_token(token)
    subject = claims.get("sub") if claims else None
    if not subject:
        return None
    user = db.get(User, str(subject))
    if user is None or not user.is_active:
        return None
    return user
