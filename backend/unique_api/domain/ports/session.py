from __future__ import annotations

from datetime import datetime
from typing import AsyncContextManager, Callable, Protocol, Sequence


class SessionData(Protocol):
    id: str
    user_id: str
    is_enable: bool
    ip_address: str | None
    user_agent: str | None
    created_at: datetime
    expires_at: datetime | None


class SessionStore(Protocol):
    async def get_by_token(self, token: str) -> SessionData | None:
        ...

    async def get_for_user(self, user_id: str, session_id: str) -> SessionData | None:
        ...

    async def list_for_user(self, user_id: str) -> Sequence[SessionData]:
        ...

    async def list_all(self) -> Sequence[SessionData]:
        ...

    async def delete(self, session: SessionData) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


SessionStoreFactory = Callable[[], AsyncContextManager[SessionStore]]
