from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..errors import AppError
from .resolver import PrincipalResolver


class PrincipalMiddleware(BaseHTTPMiddleware):
    """
    Resolve the caller before routing and attach it as ``request.state.principal``.

    Exceptions raised here never reach the app's exception handlers, so
    authentication and store failures are rendered into the canonical error
    body directly. Preflight requests pass through untouched.
    """

    def __init__(self, app, resolver_provider: Callable[[], PrincipalResolver]) -> None:
        super().__init__(app)
        self._resolver_provider = resolver_provider

    async def dispatch(self, request: Request, call_next):
        request.state.principal = None
        if request.method == "OPTIONS":
            return await call_next(request)

        resolver = self._resolver_provider()
        try:
            principal = await resolver.resolve(
                request.url.path, request.headers, request.cookies
            )
        except AppError as exc:
            return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

        request.state.principal = principal
        return await call_next(request)
