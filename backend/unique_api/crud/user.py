from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.user import UserStore
from ..models.session import Session
from ..models.user import User
from ..models.user_app import UserApp
from ..models.user_role import UserRole


class UserRepository(UserStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def list_all(self) -> list[User]:
        result = await self._session.execute(select(User).order_by(User.created_at, User.id))
        return list(result.scalars().all())

    async def create(self, **fields: object) -> User:
        user = User(**fields)
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def update(self, user: User, **changes: object) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        # Dependent rows go first so non-cascading backends stay consistent.
        for model in (UserRole, UserApp, Session):
            await self._session.execute(delete(model).where(model.user_id == user.id))
        await self._session.delete(user)
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
