from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.session import SessionStore
from ..models.session import Session


async def get_session_by_token(db: AsyncSession, token: str) -> Session | None:
    return await db.get(Session, token)


async def list_sessions(db: AsyncSession, *, user_id: str | None = None) -> list[Session]:
    stmt = select(Session).order_by(Session.created_at.desc(), Session.id)
    if user_id is not None:
        stmt = stmt.where(Session.user_id == user_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


class SessionRepository(SessionStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_token(self, token: str) -> Session | None:
        return await get_session_by_token(self._session, token)

    async def get_for_user(self, user_id: str, session_id: str) -> Session | None:
        result = await self._session.execute(
            select(Session).where(Session.id == session_id, Session.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[Session]:
        return await list_sessions(self._session, user_id=user_id)

    async def list_all(self) -> list[Session]:
        return await list_sessions(self._session)

    async def create(
        self,
        token: str,
        user_id: str,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
        is_enable: bool = True,
    ) -> Session:
        record = Session(
            id=token,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            is_enable=is_enable,
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def delete(self, session: Session) -> None:
        await self._session.delete(session)
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
