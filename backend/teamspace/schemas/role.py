from datetime import datetime

from pydantic import BaseModel, Field, field_validator

# {"resource": ["action", ...]}
Permissions = dict[str, list[str]]


def _dedupe_actions(permissions: Permissions) -> Permissions:
    return {resource: list(dict.fromkeys(actions)) for resource, actions in permissions.items()}


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    permissions: Permissions = {}

    @field_validator("permissions")
    @classmethod
    def unique_actions(cls, v: Permissions) -> Permissions:
        return _dedupe_actions(v)


class RoleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    permissions: Permissions | None = None

    @field_validator("permissions")
    @classmethod
    def unique_actions(cls, v: Permissions | None) -> Permissions | None:
        return None if v is None else _dedupe_actions(v)


class RoleResponse(BaseModel):
    id: str
    business_id: str
    name: str
    permissions: Permissions
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
