from fastapi import APIRouter, Depends, Response, status

from ..auth.permissions import Permission
from ..dependencies import get_session_store, get_user_store, require_permission_or_self
from ..domain.ports.session import SessionStore
from ..domain.ports.user import UserStore
from ..errors import NotFoundError
from ..schemas.common import DataResponse
from ..schemas.session import SessionResponse

router = APIRouter(
    prefix="/users/{user_id}/sessions",
    tags=["user-sessions"],
    dependencies=[Depends(require_permission_or_self(Permission.SESSION_MANAGE))],
)


@router.get("", response_model=DataResponse[list[SessionResponse]])
async def list_user_sessions(
    user_id: str,
    users: UserStore = Depends(get_user_store),
    sessions: SessionStore = Depends(get_session_store),
):
    if await users.get_by_id(user_id) is None:
        raise NotFoundError.for_resource("User", user_id)
    records = await sessions.list_for_user(user_id)
    return {"data": [SessionResponse.model_validate(record) for record in records]}


@router.get("/{session_id}", response_model=SessionResponse)
async def get_user_session(
    user_id: str,
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
):
    record = await sessions.get_for_user(user_id, session_id)
    if record is None:
        raise NotFoundError.for_resource("Session", session_id)
    return SessionResponse.model_validate(record)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_session(
    user_id: str,
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
) -> Response:
    record = await sessions.get_for_user(user_id, session_id)
    if record is None:
        raise NotFoundError.for_resource("Session", session_id)
    await sessions.delete(record)
    await sessions.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
