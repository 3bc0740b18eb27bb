from fastapi import APIRouter, Depends, Response, status

from ..auth.permissions import Permission
from ..dependencies import (
    get_role_store,
    get_session_store,
    get_user_store,
    require_permission,
)
from ..domain.ports.role import RoleStore
from ..domain.ports.session import SessionStore
from ..domain.ports.user import UserStore
from ..errors import NotFoundError
from ..schemas.common import DataResponse
from ..schemas.role import RoleResponse
from ..schemas.session import SessionDetailResponse, SessionResponse
from ..schemas.user import PublicUserResponse

router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
    dependencies=[Depends(require_permission(Permission.SESSION_MANAGE))],
)


@router.get("", response_model=DataResponse[list[SessionResponse]])
async def list_sessions(sessions: SessionStore = Depends(get_session_store)):
    records = await sessions.list_all()
    return {"data": [SessionResponse.model_validate(record) for record in records]}


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session(
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
    users: UserStore = Depends(get_user_store),
    roles: RoleStore = Depends(get_role_store),
):
    record = await sessions.get_by_token(session_id)
    if record is None:
        raise NotFoundError.for_resource("Session", session_id)
    user = await users.get_by_id(record.user_id)
    assigned = await roles.list_for_user(record.user_id)
    return SessionDetailResponse(
        **SessionResponse.model_validate(record).model_dump(),
        user=PublicUserResponse.model_validate(user) if user is not None else None,
        roles=[RoleResponse.model_validate(role) for role in assigned],
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
) -> Response:
    record = await sessions.get_by_token(session_id)
    if record is None:
        raise NotFoundError.for_resource("Session", session_id)
    await sessions.delete(record)
    await sessions.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
