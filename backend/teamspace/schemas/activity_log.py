from datetime import datetime

from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    id: str
    user_id: str
    business_id: str | None = None
    action: str
    method: str
    endpoint: str
    status_code: int
    ip_address: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
