from pydantic import BaseModel

from teamspace.schemas.user import UserResponse


class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int  # seconds
    user: UserResponse
