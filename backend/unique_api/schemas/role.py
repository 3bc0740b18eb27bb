from datetime import datetime

from pydantic import BaseModel, Field

# Masks are stored in a signed 32-bit column.
PERMISSION_MIN = -(2**31)
PERMISSION_MAX = 2**31 - 1


class RoleCreate(BaseModel):
    custom_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    permission: int = Field(0, ge=PERMISSION_MIN, le=PERMISSION_MAX)
    is_enable: bool = True
    is_system: bool = False


class RolePut(RoleCreate):
    pass


class RolePatch(BaseModel):
    custom_id: str | None = Field(None, min_length=1, max_length=100)
    name: str | None = Field(None, min_length=1, max_length=255)
    permission: int | None = Field(None, ge=PERMISSION_MIN, le=PERMISSION_MAX)
    is_enable: bool | None = None
    is_system: bool | None = None


class RoleResponse(BaseModel):
    id: str
    custom_id: str
    name: str
    permission: int
    is_enable: bool
    is_system: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
