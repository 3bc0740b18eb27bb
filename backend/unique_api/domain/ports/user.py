from __future__ import annotations

from datetime import date, datetime
from typing import Protocol, Sequence


class UserData(Protocol):
    id: str
    custom_id: str
    name: str
    password_hash: str | None
    email: str
    external_email: str
    birthdate: date | None
    email_verified: bool
    period: str | None
    joined_at: datetime | None
    is_system: bool
    is_enable: bool
    is_suspended: bool
    suspended_until: datetime | None
    suspended_reason: str | None
    created_at: datetime
    updated_at: datetime


class UserStore(Protocol):
    async def get_by_id(self, user_id: str) -> UserData | None:
        ...

    async def list_all(self) -> Sequence[UserData]:
        ...

    async def create(self, **fields: object) -> UserData:
        ...

    async def update(self, user: UserData, **changes: object) -> UserData:
        ...

    async def delete(self, user: UserData) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
