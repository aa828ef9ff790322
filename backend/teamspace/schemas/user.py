from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


def _normalize_username(v: str) -> str:
    if not v.replace("_", "").isalnum():
        raise ValueError("Username may only contain letters, digits and underscores")
    return v.lower()


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    avatar_url: str | None = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def valid_username(cls, v: str) -> str:
        return _normalize_username(v)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(BaseModel):
    """Either username or email identifies the account."""

    username: str | None = None
    email: EmailStr | None = None
    password: str

    @model_validator(mode="after")
    def one_identifier(self) -> "UserLogin":
        if not self.username and not self.email:
            raise ValueError("Email or username is required")
        if self.username:
            self.username = self.username.lower()
        if self.email:
            self.email = self.email.lower()
        return self


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    avatar_url: str | None = None
    status: str | None = None
    is_active: bool
    created_at: datetime | None = None
    business_ids: list[str] = []

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    avatar_url: str | None = Field(None, max_length=500)
    status: str | None = Field(None, max_length=100)
