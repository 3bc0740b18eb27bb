"""
Create the schema and the default roles.

Safe to run repeatedly: roles whose ``custom_id`` already exists are left
untouched, so permissions edited through the API are never overwritten.

Usage:
    python -m scripts.seed_roles
"""
import asyncio
import os
import sys

# Add parent directory to path to import unique_api modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from unique_api.auth.permissions import Permission
from unique_api.crud.role import RoleRepository
from unique_api.models import Base


DEFAULT_ROLES = [
    {
        "custom_id": "admin",
        "name": "Administrator",
        "permission": Permission.all_known(),
        "is_system": True,
    },
    {
        "custom_id": "user_manager",
        "name": "User Manager",
        "permission": (
            Permission.USER_READ
            | Permission.USER_CREATE
            | Permission.USER_UPDATE
            | Permission.USER_DISABLE
            | Permission.SESSION_MANAGE
        ),
        "is_system": True,
    },
    {
        "custom_id": "app_manager",
        "name": "App Manager",
        "permission": (
            Permission.APP_READ
            | Permission.APP_CREATE
            | Permission.APP_UPDATE
            | Permission.APP_DELETE
            | Permission.APP_SECRET_ROTATE
        ),
        "is_system": True,
    },
    {
        "custom_id": "member",
        "name": "Member",
        "permission": Permission.empty(),
        "is_system": True,
    },
]


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


async def seed_roles(session_factory: async_sessionmaker[AsyncSession]) -> list[str]:
    """Insert missing default roles and return the ``custom_id`` of each one created."""
    created: list[str] = []
    async with session_factory() as session:
        role_repo = RoleRepository(session)
        for role_data in DEFAULT_ROLES:
            if await role_repo.get_by_custom_id(role_data["custom_id"]) is not None:
                print(f"  = {role_data['custom_id']} (exists)")
                continue
            permission = role_data["permission"]
            await role_repo.create(
                custom_id=role_data["custom_id"],
                name=role_data["name"],
                permission=permission.bits,
                is_system=role_data["is_system"],
            )
            created.append(role_data["custom_id"])
            print(f"  + {role_data['custom_id']} ({', '.join(permission.names()) or 'no permissions'})")
        await role_repo.commit()
    return created


async def main() -> None:
    from unique_api.database import AsyncSessionLocal, engine

    print("Creating schema...")
    await create_schema(engine)
    print("Seeding default roles...")
    created = await seed_roles(AsyncSessionLocal)
    print(f"Done: {len(created)} role(s) created.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
