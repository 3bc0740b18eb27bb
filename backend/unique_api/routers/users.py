from fastapi import APIRouter, Depends, Response, status

from ..auth.permissions import Permission
from ..auth.principal import Principal
from ..config import settings
from ..dependencies import (
    get_authorization_engine,
    get_principal,
    get_user_store,
    require_permission,
    require_permission_or_self,
)
from ..domain.ports.user import UserData, UserStore
from ..errors import NotFoundError, ValidationError
from ..schemas.permission import PermissionsResponse
from ..schemas.user import (
    DetailedUserResponse,
    PasswordChange,
    PublicUserResponse,
    UserCreate,
    UserPatch,
    UserPut,
)
from ..services.authorization import AuthorizationEngine
from ..utils.naming import default_email, is_temporary_email
from ..utils.security import hash_password, verify_password

router = APIRouter(prefix="/users", tags=["users"])


def _is_publicly_visible(user: UserData) -> bool:
    return (
        user.is_enable
        and not user.is_suspended
        and not is_temporary_email(user.email)
    )


async def _get_user_or_404(users: UserStore, user_id: str) -> UserData:
    user = await users.get_by_id(user_id)
    if user is None:
        raise NotFoundError.for_resource("User", user_id)
    return user


async def _apply_changes(
    users: UserStore, user: UserData, changes: dict[str, object]
) -> UserData:
    updated = await users.update(user, **changes)
    await users.commit()
    return updated


@router.get("")
async def list_users(
    principal: Principal = Depends(get_principal),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
    users: UserStore = Depends(get_user_store),
):
    records = await users.list_all()
    if await engine.has_permission(principal, Permission.USER_READ):
        return {"data": [DetailedUserResponse.model_validate(user) for user in records]}
    return {
        "data": [
            PublicUserResponse.model_validate(user)
            for user in records
            if _is_publicly_visible(user)
        ]
    }


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
    users: UserStore = Depends(get_user_store),
):
    detailed = principal.user_id == user_id or await engine.has_permission(
        principal, Permission.USER_READ
    )
    user = await users.get_by_id(user_id)
    if user is None or (not detailed and not _is_publicly_visible(user)):
        raise NotFoundError.for_resource("User", user_id)
    if detailed:
        return DetailedUserResponse.model_validate(user)
    return PublicUserResponse.model_validate(user)


@router.post(
    "",
    response_model=DetailedUserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(Permission.USER_CREATE))],
)
async def create_user(
    payload: UserCreate,
    users: UserStore = Depends(get_user_store),
):
    fields = payload.model_dump(exclude={"password", "email"})
    email = payload.email or default_email(
        payload.custom_id, settings.email_domain, payload.period
    )
    user = await users.create(
        **fields,
        email=email,
        password_hash=hash_password(payload.password),
    )
    await users.commit()
    return DetailedUserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=DetailedUserResponse,
    dependencies=[Depends(require_permission_or_self(Permission.USER_UPDATE))],
)
async def replace_user(
    user_id: str,
    payload: UserPut,
    users: UserStore = Depends(get_user_store),
):
    user = await _get_user_or_404(users, user_id)
    updated = await _apply_changes(users, user, payload.model_dump())
    return DetailedUserResponse.model_validate(updated)


@router.patch(
    "/{user_id}",
    response_model=DetailedUserResponse,
    dependencies=[Depends(require_permission_or_self(Permission.USER_UPDATE))],
)
async def update_user(
    user_id: str,
    payload: UserPatch,
    users: UserStore = Depends(get_user_store),
):
    user = await _get_user_or_404(users, user_id)
    changes = payload.model_dump(exclude_unset=True)
    updated = await _apply_changes(users, user, changes)
    return DetailedUserResponse.model_validate(updated)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(Permission.USER_DELETE))],
)
async def delete_user(
    user_id: str,
    users: UserStore = Depends(get_user_store),
) -> Response:
    user = await _get_user_or_404(users, user_id)
    await users.delete(user)
    await users.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    user_id: str,
    payload: PasswordChange,
    principal: Principal = Depends(require_permission_or_self(Permission.USER_UPDATE)),
    users: UserStore = Depends(get_user_store),
) -> Response:
    user = await _get_user_or_404(users, user_id)
    if principal.user_id == user_id:
        if payload.current_password is None or not verify_password(
            payload.current_password, user.password_hash
        ):
            raise ValidationError("Current password is incorrect")
    await users.update(user, password_hash=hash_password(payload.new_password))
    await users.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/permissions", response_model=PermissionsResponse)
async def get_user_permissions(
    user_id: str,
    _principal: Principal = Depends(require_permission_or_self(Permission.USER_READ)),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
    users: UserStore = Depends(get_user_store),
):
    user = await _get_user_or_404(users, user_id)
    effective = await engine.permissions_for_user(user.id)
    report = engine.permission_report(effective)
    return PermissionsResponse(
        permissions_bit=report.permissions_bit,
        permissions_text=report.permissions_text,
    )
