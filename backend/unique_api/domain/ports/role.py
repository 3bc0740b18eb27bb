from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence


class RoleData(Protocol):
    id: str
    custom_id: str
    name: str
    permission: int
    is_enable: bool
    is_system: bool
    created_at: datetime
    updated_at: datetime


class RoleStore(Protocol):
    async def list_for_user(self, user_id: str) -> Sequence[RoleData]:
        ...

    async def get_by_id(self, role_id: str) -> RoleData | None:
        ...

    async def list_all(self) -> Sequence[RoleData]:
        ...

    async def create(
        self,
        *,
        custom_id: str,
        name: str,
        permission: int,
        is_enable: bool = True,
        is_system: bool = False,
    ) -> RoleData:
        ...

    async def update(self, role: RoleData, **changes: object) -> RoleData:
        ...

    async def delete(self, role: RoleData) -> None:
        ...

    async def grant(self, user_id: str, role_id: str) -> None:
        ...

    async def revoke(self, user_id: str, role_id: str) -> bool:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
