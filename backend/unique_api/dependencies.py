"""
Request-scoped wiring: database session, store adapters, the authorization
engine and the route guards built on top of it.

Guards are FastAPI dependencies, so they run before the handler body and a
denied request never reaches business logic.
"""
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.permissions import Permission
from .auth.principal import Principal
from .auth.resolver import PrincipalResolver
from .config import get_settings
from .crud.app import AppRepository
from .crud.role import RoleRepository
from .crud.session import SessionRepository
from .crud.user import UserRepository
from .database import AsyncSessionLocal, get_session
from .domain.ports.app import AppStore
from .domain.ports.role import RoleStore
from .domain.ports.session import SessionStore, SessionStoreFactory
from .domain.ports.user import UserStore
from .errors import AuthError
from .services.authorization import AuthorizationEngine


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserRepository(db)


def get_role_store(db: AsyncSession = Depends(get_db)) -> RoleStore:
    return RoleRepository(db)


def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    return SessionRepository(db)


def get_app_store(db: AsyncSession = Depends(get_db)) -> AppStore:
    return AppRepository(db)


def get_session_store_factory() -> SessionStoreFactory:
    @asynccontextmanager
    async def factory() -> AsyncIterator[SessionStore]:
        async with AsyncSessionLocal() as session:
            yield SessionRepository(session)

    return factory


def build_principal_resolver() -> PrincipalResolver:
    config = get_settings()
    return PrincipalResolver(
        api_key=config.api_key,
        session_store_factory=get_session_store_factory(),
        session_cookie_name=config.session_cookie_name,
        api_key_header=config.api_key_header,
        constant_time_compare=config.constant_time_secret_compare,
    )


def get_authorization_engine(
    roles: RoleStore = Depends(get_role_store),
) -> AuthorizationEngine:
    return AuthorizationEngine(roles)


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise AuthError()
    return principal


def require_permission(permission: Permission) -> Callable:
    """Guard: the caller must hold every bit of ``permission``."""

    async def dependency(
        principal: Principal = Depends(get_principal),
        engine: AuthorizationEngine = Depends(get_authorization_engine),
    ) -> Principal:
        await engine.require_permission(principal, permission)
        return principal

    return dependency


def require_permission_or_self(
    permission: Permission, user_id_param: str = "user_id"
) -> Callable:
    """Guard: the caller is the user named in the path, or holds ``permission``."""

    async def dependency(
        request: Request,
        principal: Principal = Depends(get_principal),
        engine: AuthorizationEngine = Depends(get_authorization_engine),
    ) -> Principal:
        target_user_id = request.path_params[user_id_param]
        await engine.require_permission_or_self(principal, permission, target_user_id)
        return principal

    return dependency


def require_app_owner_or_permission(
    permission: Permission, app_id_param: str = "app_id"
) -> Callable:
    """Guard: the caller owns the app named in the path, or holds ``permission``."""

    async def dependency(
        request: Request,
        principal: Principal = Depends(get_principal),
        engine: AuthorizationEngine = Depends(get_authorization_engine),
        apps: AppStore = Depends(get_app_store),
    ) -> Principal:
        async def is_owner(owner: Principal, app_id: str) -> bool:
            return await apps.is_owner(owner.user_id, app_id)

        await engine.require_permission_or_owner(
            principal, permission, request.path_params[app_id_param], is_owner
        )
        return principal

    return dependency
