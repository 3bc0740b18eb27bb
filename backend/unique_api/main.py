import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import (
    IntegrityError,
    MultipleResultsFound,
    NoResultFound,
    ProgrammingError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.middleware import PrincipalMiddleware
from .config import settings
from .database import engine
from .dependencies import build_principal_resolver
from .errors import (
    AppError,
    AuthError,
    ConflictError,
    InternalError,
    NotFoundError,
    PermissionError,
    StoreError,
    ValidationError,
    error_payload,
    resolve_error_code,
)
from .routers import (
    apps,
    permissions,
    roles,
    sessions,
    user_roles,
    user_sessions,
    users,
)

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


log_level = _resolve_log_level(log_level_name)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
logger = logging.getLogger("unique_api")
logger.setLevel(log_level)


def _health_response(status_text: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_text})


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")
    if settings.debug:
        logger.warning("DEBUG=true, do not use in production")
    if not settings.api_key:
        logger.info("API_KEY is not set; system principal authentication is disabled")

    yield

    await engine.dispose()
    logger.info("Application stopped")


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

# Added first so that CORS, when enabled, wraps it and answers preflights.
app.add_middleware(PrincipalMiddleware, resolver_provider=build_principal_resolver)

if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["*"],
    )

routers = [
    users.router,
    user_roles.router,
    user_sessions.router,
    roles.router,
    sessions.router,
    apps.router,
    permissions.router,
]

for router in routers:
    app.include_router(router)

SAFE_HTTP_MESSAGES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: ValidationError.message,
    status.HTTP_401_UNAUTHORIZED: AuthError.message,
    status.HTTP_403_FORBIDDEN: PermissionError.message,
    status.HTTP_404_NOT_FOUND: NotFoundError.message,
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
    status.HTTP_409_CONFLICT: ConflictError.message,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ValidationError.message,
}


def _log_error(request: Request, status_code: int, code: str, message: str, exc: Exception | None = None) -> None:
    request_id = request.headers.get("x-request-id")
    principal = getattr(request.state, "principal", None)
    user_id = principal.user_id if principal is not None else "-"
    log_message = (
        f"[{code}] path={request.url.path} user_id={user_id} "
        f"request_id={request_id or 'n/a'} message={message}"
    )
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message, exc_info=exc)
    else:
        logger.warning(log_message)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    _log_error(request, exc.status_code, exc.code, exc.message, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(HTTPException)
async def handle_http_exception(
    request: Request, exc: HTTPException | StarletteHTTPException
) -> JSONResponse:
    safe_message = SAFE_HTTP_MESSAGES.get(
        exc.status_code,
        InternalError.message if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else "Request failed",
    )
    detail = exc.detail
    detail_message = detail if isinstance(detail, str) else ""
    code = resolve_error_code(exc.status_code)
    _log_error(request, exc.status_code, code, detail_message.strip() or safe_message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(code, safe_message, detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StarletteHTTPException)
async def handle_starlette_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return await handle_http_exception(request, exc)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ``ctx`` may carry exception instances that are not JSON serializable.
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = "Request validation failed"
    _log_error(request, status.HTTP_422_UNPROCESSABLE_ENTITY, ValidationError.code, message)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_payload(ValidationError.code, message, jsonable_errors(exc)),
    )


@app.exception_handler(ValueError)
async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    log_message = str(exc).strip() or "Invalid request"
    _log_error(request, status.HTTP_400_BAD_REQUEST, ValidationError.code, log_message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(ValidationError.code, "Invalid request", log_message),
    )


@app.exception_handler(IntegrityError)
async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    message = "Request could not be completed due to a conflict"
    _log_error(request, status.HTTP_409_CONFLICT, ConflictError.code, message)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_payload(ConflictError.code, message),
    )


@app.exception_handler(NoResultFound)
async def handle_no_result_found(request: Request, exc: NoResultFound) -> JSONResponse:
    message = "Requested resource was not found"
    _log_error(request, status.HTTP_404_NOT_FOUND, NotFoundError.code, message)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_payload(NotFoundError.code, message),
    )


@app.exception_handler(MultipleResultsFound)
async def handle_multiple_results_found(
    request: Request, exc: MultipleResultsFound
) -> JSONResponse:
    message = "Multiple resources found where one expected"
    _log_error(request, status.HTTP_409_CONFLICT, ConflictError.code, message)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_payload(ConflictError.code, message),
    )


@app.exception_handler(ProgrammingError)
async def handle_programming_error(request: Request, exc: ProgrammingError) -> JSONResponse:
    message = "Database not initialized. Ensure the schema has been created."
    _log_error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, StoreError.code, message, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(StoreError.code, message),
    )


@app.exception_handler(SQLAlchemyError)
async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    _log_error(request, StoreError.status_code, StoreError.code, StoreError.message, exc)
    return JSONResponse(
        status_code=StoreError.status_code,
        content=error_payload(StoreError.code, StoreError.message),
    )


@app.exception_handler(Exception)
async def handle_unhandled_exception(
    request: Request, exc: Exception
) -> JSONResponse:
    _log_error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.code,
        InternalError.message,
        exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(InternalError.code, InternalError.message),
    )


@app.get("/health", tags=["health"])
async def healthcheck() -> Response:
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Healthcheck database probe failed: %s", exc)
        return _health_response("error", status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.debug("Healthcheck passed")
    return _health_response("ok", status.HTTP_200_OK)
