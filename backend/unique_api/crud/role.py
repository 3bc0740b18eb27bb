from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.role import RoleStore
from ..models.role import Role
from ..models.user_role import UserRole


class RoleRepository(RoleStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        custom_id: str,
        name: str,
        permission: int,
        is_enable: bool = True,
        is_system: bool = False,
    ) -> Role:
        role = Role(
            custom_id=custom_id,
            name=name,
            permission=permission,
            is_enable=is_enable,
            is_system=is_system,
        )
        self._session.add(role)
        await self._session.flush()
        await self._session.refresh(role)
        return role

    async def get_by_id(self, role_id: str) -> Role | None:
        return await self._session.get(Role, role_id)

    async def get_by_custom_id(self, custom_id: str) -> Role | None:
        result = await self._session.execute(
            select(Role).where(Role.custom_id == custom_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Role]:
        result = await self._session.execute(select(Role).order_by(Role.created_at, Role.id))
        return list(result.scalars().all())

    async def update(self, role: Role, **changes: object) -> Role:
        for field, value in changes.items():
            setattr(role, field, value)
        await self._session.flush()
        await self._session.refresh(role)
        return role

    async def delete(self, role: Role) -> None:
        await self._session.execute(delete(UserRole).where(UserRole.role_id == role.id))
        await self._session.delete(role)
        await self._session.flush()

    async def list_for_user(self, user_id: str) -> list[Role]:
        result = await self._session.execute(
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.created_at, Role.id)
        )
        return list(result.scalars().all())

    async def grant(self, user_id: str, role_id: str) -> None:
        # Duplicate grants surface as IntegrityError from the unique pair.
        self._session.add(UserRole(user_id=user_id, role_id=role_id))
        await self._session.flush()

    async def revoke(self, user_id: str, role_id: str) -> bool:
        result = await self._session.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id,
            )
        )
        await self._session.flush()
        return result.rowcount > 0

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
