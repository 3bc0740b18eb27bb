from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.app import AppStore
from ..models.app import App
from ..models.user_app import UserApp


class AppRepository(AppStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, app_id: str) -> App | None:
        return await self._session.get(App, app_id)

    async def list_all(self) -> list[App]:
        result = await self._session.execute(select(App).order_by(App.created_at, App.id))
        return list(result.scalars().all())

    async def list_owned(self, user_id: str) -> list[App]:
        result = await self._session.execute(
            select(App)
            .join(UserApp, UserApp.app_id == App.id)
            .where(UserApp.user_id == user_id)
            .order_by(App.created_at, App.id)
        )
        return list(result.scalars().all())

    async def is_owner(self, user_id: str, app_id: str) -> bool:
        result = await self._session.execute(
            select(
                exists().where(UserApp.user_id == user_id, UserApp.app_id == app_id)
            )
        )
        return bool(result.scalar())

    async def create(
        self,
        *,
        name: str,
        client_secret: str,
        is_enable: bool = True,
        owner_id: str | None = None,
    ) -> App:
        app = App(name=name, client_secret=client_secret, is_enable=is_enable)
        self._session.add(app)
        await self._session.flush()
        if owner_id is not None:
            self._session.add(UserApp(user_id=owner_id, app_id=app.id))
            await self._session.flush()
        await self._session.refresh(app)
        return app

    async def update(self, app: App, **changes: object) -> App:
        for field, value in changes.items():
            setattr(app, field, value)
        await self._session.flush()
        await self._session.refresh(app)
        return app

    async def delete(self, app: App) -> None:
        await self._session.execute(delete(UserApp).where(UserApp.app_id == app.id))
        await self._session.delete(app)
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
