from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AppCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    is_enable: bool = True


class AppPut(AppCreate):
    pass


class AppPatch(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    is_enable: bool | None = None


class AppResponse(BaseModel):
    id: str
    name: str
    is_enable: bool
    created_at: datetime
    updated_at: datetime
    client_secret: str | None = None

    class Config:
        from_attributes = True

    def public_dump(self) -> dict[str, Any]:
        """Serialize, leaving ``client_secret`` out unless it was disclosed."""
        exclude = {"client_secret"} if self.client_secret is None else None
        return self.model_dump(mode="json", exclude=exclude)
