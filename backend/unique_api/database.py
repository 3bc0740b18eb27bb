from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, settings


def engine_options(config: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": config.debug}
    # SQLite drivers use a static/null pool that rejects queue-pool sizing.
    if not config.is_sqlite:
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_recycle=config.db_pool_recycle,
            pool_pre_ping=config.db_pool_pre_ping,
        )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings))

# ORM objects stay usable after commit; repositories refresh after writes.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
