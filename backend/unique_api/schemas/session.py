from datetime import datetime

from pydantic import BaseModel

from .role import RoleResponse
from .user import PublicUserResponse


class SessionResponse(BaseModel):
    id: str
    user_id: str
    is_enable: bool
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
    expires_at: datetime | None = None

    class Config:
        from_attributes = True


class SessionDetailResponse(SessionResponse):
    user: PublicUserResponse | None = None
    roles: list[RoleResponse] = []
