from fastapi import APIRouter, Depends, Response, status

from ..auth.permissions import Permission
from ..dependencies import (
    get_role_store,
    get_user_store,
    require_permission,
    require_permission_or_self,
)
from ..domain.ports.role import RoleStore
from ..domain.ports.user import UserStore
from ..errors import NotFoundError
from ..schemas.common import DataResponse
from ..schemas.role import RoleResponse

router = APIRouter(prefix="/users/{user_id}/roles", tags=["user-roles"])


@router.get(
    "",
    response_model=DataResponse[list[RoleResponse]],
    dependencies=[Depends(require_permission_or_self(Permission.PERMISSION_MANAGE))],
)
async def list_user_roles(
    user_id: str,
    users: UserStore = Depends(get_user_store),
    roles: RoleStore = Depends(get_role_store),
):
    if await users.get_by_id(user_id) is None:
        raise NotFoundError.for_resource("User", user_id)
    assigned = await roles.list_for_user(user_id)
    return {"data": [RoleResponse.model_validate(role) for role in assigned]}


@router.put(
    "/{role_id}",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.PERMISSION_MANAGE))],
)
async def grant_role(
    user_id: str,
    role_id: str,
    users: UserStore = Depends(get_user_store),
    roles: RoleStore = Depends(get_role_store),
):
    if await users.get_by_id(user_id) is None:
        raise NotFoundError.for_resource("User", user_id)
    role = await roles.get_by_id(role_id)
    if role is None:
        raise NotFoundError.for_resource("Role", role_id)
    await roles.grant(user_id, role_id)
    await roles.commit()
    return RoleResponse.model_validate(role)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(Permission.PERMISSION_MANAGE))],
)
async def revoke_role(
    user_id: str,
    role_id: str,
    roles: RoleStore = Depends(get_role_store),
) -> Response:
    if not await roles.revoke(user_id, role_id):
        raise NotFoundError(
            "Role is not assigned to user",
            details={"user_id": user_id, "role_id": role_id},
        )
    await roles.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
