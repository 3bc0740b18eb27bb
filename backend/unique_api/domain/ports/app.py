from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence


class AppData(Protocol):
    id: str
    name: str
    client_secret: str
    is_enable: bool
    created_at: datetime
    updated_at: datetime


class AppStore(Protocol):
    async def get_by_id(self, app_id: str) -> AppData | None:
        ...

    async def list_all(self) -> Sequence[AppData]:
        ...

    async def list_owned(self, user_id: str) -> Sequence[AppData]:
        ...

    async def is_owner(self, user_id: str, app_id: str) -> bool:
        ...

    async def create(
        self,
        *,
        name: str,
        client_secret: str,
        is_enable: bool = True,
        owner_id: str | None = None,
    ) -> AppData:
        ...

    async def update(self, app: AppData, **changes: object) -> AppData:
        ...

    async def delete(self, app: AppData) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
