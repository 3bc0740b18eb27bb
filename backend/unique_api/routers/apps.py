import logging

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth.permissions import Permission
from ..auth.principal import Principal
from ..dependencies import (
    get_app_store,
    get_authorization_engine,
    get_principal,
    require_app_owner_or_permission,
)
from ..domain.ports.app import AppData, AppStore
from ..errors import NotFoundError
from ..schemas.app import AppCreate, AppPatch, AppPut, AppResponse
from ..services.authorization import AuthorizationEngine
from ..utils.security import generate_client_secret

logger = logging.getLogger("unique_api.apps")

router = APIRouter(prefix="/apps", tags=["apps"])


def _app_view(app: AppData, *, reveal_secret: bool = False) -> dict:
    view = AppResponse.model_validate(app)
    if not reveal_secret:
        view.client_secret = None
    return view.public_dump()


async def _get_app_or_404(apps: AppStore, app_id: str) -> AppData:
    app = await apps.get_by_id(app_id)
    if app is None:
        raise NotFoundError.for_resource("App", app_id)
    return app


@router.get("")
async def list_apps(
    include_all: bool = Query(False, alias="all"),
    principal: Principal = Depends(get_principal),
    engine: AuthorizationEngine = Depends(get_authorization_engine),
    apps: AppStore = Depends(get_app_store),
):
    if include_all:
        await engine.require_permission(principal, Permission.APP_READ)
        records = await apps.list_all()
    else:
        records = await apps.list_owned(principal.user_id)
    return {"data": [_app_view(app) for app in records]}


@router.get("/{app_id}")
async def get_app(
    app_id: str,
    principal: Principal = Depends(get_principal),
    apps: AppStore = Depends(get_app_store),
):
    app = await _get_app_or_404(apps, app_id)
    is_owner = await apps.is_owner(principal.user_id, app_id)
    return _app_view(app, reveal_secret=is_owner)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_app(
    payload: AppCreate,
    principal: Principal = Depends(get_principal),
    apps: AppStore = Depends(get_app_store),
):
    # The system principal has no user row to own the app.
    owner_id = None if principal.is_system else principal.user_id
    app = await apps.create(
        name=payload.name,
        is_enable=payload.is_enable,
        client_secret=generate_client_secret(),
        owner_id=owner_id,
    )
    await apps.commit()
    logger.info("App created app_id=%s owner_id=%s", app.id, owner_id or "-")
    return _app_view(app, reveal_secret=True)


@router.put(
    "/{app_id}",
    dependencies=[Depends(require_app_owner_or_permission(Permission.APP_UPDATE))],
)
async def replace_app(
    app_id: str,
    payload: AppPut,
    apps: AppStore = Depends(get_app_store),
):
    app = await _get_app_or_404(apps, app_id)
    updated = await apps.update(app, **payload.model_dump())
    await apps.commit()
    return _app_view(updated)


@router.patch(
    "/{app_id}",
    dependencies=[Depends(require_app_owner_or_permission(Permission.APP_UPDATE))],
)
async def update_app(
    app_id: str,
    payload: AppPatch,
    apps: AppStore = Depends(get_app_store),
):
    app = await _get_app_or_404(apps, app_id)
    updated = await apps.update(app, **payload.model_dump(exclude_unset=True))
    await apps.commit()
    return _app_view(updated)


@router.delete(
    "/{app_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_app_owner_or_permission(Permission.APP_DELETE))],
)
async def delete_app(
    app_id: str,
    apps: AppStore = Depends(get_app_store),
) -> Response:
    app = await _get_app_or_404(apps, app_id)
    await apps.delete(app)
    await apps.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{app_id}/secret",
    dependencies=[Depends(require_app_owner_or_permission(Permission.APP_SECRET_ROTATE))],
)
async def rotate_app_secret(
    app_id: str,
    apps: AppStore = Depends(get_app_store),
):
    app = await _get_app_or_404(apps, app_id)
    updated = await apps.update(app, client_secret=generate_client_secret())
    await apps.commit()
    logger.info("App secret rotated app_id=%s", app_id)
    return _app_view(updated, reveal_secret=True)
