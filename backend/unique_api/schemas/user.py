from datetime import date, datetime

from pydantic import BaseModel, Field


class PublicUserResponse(BaseModel):
    id: str
    custom_id: str
    name: str
    email: str
    period: str | None = None
    joined_at: datetime | None = None
    is_system: bool
    created_at: datetime

    class Config:
        from_attributes = True


class DetailedUserResponse(PublicUserResponse):
    external_email: str
    birthdate: date | None = None
    email_verified: bool
    is_enable: bool
    is_suspended: bool
    suspended_until: datetime | None = None
    suspended_reason: str | None = None
    updated_at: datetime


class UserCreate(BaseModel):
    custom_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    email: str | None = Field(None, max_length=255)
    external_email: str = Field(..., min_length=3, max_length=255)
    birthdate: date | None = None
    period: str | None = Field(None, max_length=32)
    joined_at: datetime | None = None
    is_system: bool = False
    is_enable: bool = False


class UserPut(BaseModel):
    custom_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    external_email: str = Field(..., min_length=3, max_length=255)
    birthdate: date | None = None
    email_verified: bool = False
    period: str | None = Field(None, max_length=32)
    joined_at: datetime | None = None
    is_system: bool = False
    is_enable: bool = False
    is_suspended: bool = False
    suspended_until: datetime | None = None
    suspended_reason: str | None = None


class UserPatch(BaseModel):
    custom_id: str | None = Field(None, min_length=1, max_length=100)
    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, min_length=3, max_length=255)
    external_email: str | None = Field(None, min_length=3, max_length=255)
    birthdate: date | None = None
    email_verified: bool | None = None
    period: str | None = Field(None, max_length=32)
    joined_at: datetime | None = None
    is_system: bool | None = None
    is_enable: bool | None = None
    is_suspended: bool | None = None
    suspended_until: datetime | None = None
    suspended_reason: str | None = None


class PasswordChange(BaseModel):
    current_password: str | None = None
    new_password: str = Field(..., min_length=1)
