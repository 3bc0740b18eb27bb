from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError

from ..auth.permissions import Permission, describe_bits
from ..auth.principal import Principal
from ..domain.ports.role import RoleStore
from ..errors import PermissionError, StoreError

logger = logging.getLogger("unique_api.rbac")

OwnershipCheck = Callable[[Principal, str], Awaitable[bool]]


@dataclass(frozen=True)
class PermissionReport:
    permissions_bit: int
    permissions_text: list[str] = field(default_factory=list)


class AuthorizationEngine:
    """Answers "may this principal do X" from the roles assigned to it.

    Effective permissions are the union of every assigned role's mask and are
    read from the role store on each call. Nothing is cached, so grants and
    revocations apply to the very next check.
    """

    def __init__(self, roles: RoleStore) -> None:
        self._roles = roles

    async def effective_permissions(self, principal: Principal) -> Permission:
        return await self.permissions_for_user(principal.user_id)

    async def permissions_for_user(self, user_id: str) -> Permission:
        try:
            roles = await self._roles.list_for_user(user_id)
        except SQLAlchemyError as exc:
            logger.error("Role lookup failed user_id=%s", user_id, exc_info=exc)
            raise StoreError("Could not load role assignments") from exc
        return Permission.union(role.permission for role in roles)

    async def has_permission(self, principal: Principal, required: Permission) -> bool:
        effective = await self.effective_permissions(principal)
        return effective.contains(required)

    async def require_permission(self, principal: Principal, required: Permission) -> None:
        """Raise ``PermissionError`` unless every bit of ``required`` is held.

        Raises:
            PermissionError: the principal lacks at least one required bit
            StoreError: roles could not be read
        """
        if await self.has_permission(principal, required):
            return
        _, required_names = describe_bits(required.bits)
        logger.warning(
            "Permission denied user_id=%s required=%s",
            principal.user_id,
            ",".join(required_names) or "-",
        )
        raise PermissionError.missing(required_names)

    async def require_permission_or_self(
        self,
        principal: Principal,
        required: Permission,
        target_user_id: str,
    ) -> None:
        # Acting on one's own record never touches the role store.
        if principal.user_id == target_user_id:
            return
        await self.require_permission(principal, required)

    async def require_permission_or_owner(
        self,
        principal: Principal,
        required: Permission,
        resource_id: str,
        is_owner: OwnershipCheck,
    ) -> None:
        if await is_owner(principal, resource_id):
            return
        await self.require_permission(principal, required)

    @staticmethod
    def permission_report(bits: int | Permission) -> PermissionReport:
        mask = Permission(int(bits))
        _, all_names = describe_bits(mask.bits)
        return PermissionReport(permissions_bit=mask.bits, permissions_text=all_names)
