from fastapi import APIRouter, Depends, Response, status

from ..auth.permissions import Permission
from ..dependencies import get_authorization_engine, get_role_store, require_permission
from ..domain.ports.role import RoleData, RoleStore
from ..errors import NotFoundError
from ..schemas.common import DataResponse
from ..schemas.permission import PermissionsResponse
from ..schemas.role import RoleCreate, RolePatch, RolePut, RoleResponse
from ..services.authorization import AuthorizationEngine

router = APIRouter(
    prefix="/roles",
    tags=["roles"],
    dependencies=[Depends(require_permission(Permission.ROLE_MANAGE))],
)


async def _get_role_or_404(roles: RoleStore, role_id: str) -> RoleData:
    role = await roles.get_by_id(role_id)
    if role is None:
        raise NotFoundError.for_resource("Role", role_id)
    return role


@router.get("", response_model=DataResponse[list[RoleResponse]])
async def list_roles(roles: RoleStore = Depends(get_role_store)):
    records = await roles.list_all()
    return {"data": [RoleResponse.model_validate(role) for role in records]}


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(role_id: str, roles: RoleStore = Depends(get_role_store)):
    return RoleResponse.model_validate(await _get_role_or_404(roles, role_id))


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(payload: RoleCreate, roles: RoleStore = Depends(get_role_store)):
    role = await roles.create(**payload.model_dump())
    await roles.commit()
    return RoleResponse.model_validate(role)


@router.put("/{role_id}", response_model=RoleResponse)
async def replace_role(
    role_id: str,
    payload: RolePut,
    roles: RoleStore = Depends(get_role_store),
):
    role = await _get_role_or_404(roles, role_id)
    updated = await roles.update(role, **payload.model_dump())
    await roles.commit()
    return RoleResponse.model_validate(updated)


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    payload: RolePatch,
    roles: RoleStore = Depends(get_role_store),
):
    role = await _get_role_or_404(roles, role_id)
    updated = await roles.update(role, **payload.model_dump(exclude_unset=True))
    await roles.commit()
    return RoleResponse.model_validate(updated)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(role_id: str, roles: RoleStore = Depends(get_role_store)) -> Response:
    role = await _get_role_or_404(roles, role_id)
    await roles.delete(role)
    await roles.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{role_id}/permissions", response_model=PermissionsResponse)
async def get_role_permissions(
    role_id: str,
    roles: RoleStore = Depends(get_role_store),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
):
    role = await _get_role_or_404(roles, role_id)
    report = engine.permission_report(role.permission)
    return PermissionsResponse(
        permissions_bit=report.permissions_bit,
        permissions_text=report.permissions_text,
    )
