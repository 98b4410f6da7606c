"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.todo_api.api.http.app_data import ApplicationDependencies
from src.todo_api.api.http.middleware.limiter import (
    close_rate_limiter,
    configure_rate_limiter,
)
from src.todo_api.api.http.routers.auth import router as auth_router
from src.todo_api.api.http.routers.health import router as health_router
from src.todo_api.api.http.routers.todos import router as todos_router
from src.todo_api.api.utils.app_startup import configure_logging
from src.todo_api.core.errors import AppError, Internal, InvalidInput, Unavailable
from src.todo_api.core.security import resolve_signing_secret
from src.todo_api.core.services import (
    DbManageService,
    DbSessionService,
    JwtGeneratorService,
    JwtVerificationService,
)
from src.todo_api.runtime.context import get_config

# Initialize logging
configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        # HSTS only in prod
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains",
            )
        return response


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


app = FastAPI(
    title="Todo API",
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

app.add_middleware(SecurityHeadersMiddleware)

# expose startup for tests
__all__ = ["app", "startup", "shutdown"]

# --- CORS configuration ---
if get_config().app.cors.allow_credentials and (
    "*" in get_config().app.cors.origins
):
    raise RuntimeError(
        "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().app.cors.origins,
    allow_credentials=get_config().app.cors.allow_credentials,
    allow_methods=get_config().app.cors.allow_methods,
    allow_headers=get_config().app.cors.allow_headers,
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "-"


def _error_response(request: Request, status_code: int, msg: str, headers=None):
    request_id = _request_id(request)
    return JSONResponse(
        status_code=status_code,
        content={"msg": msg, "request_id": request_id},
        headers={"X-Request-ID": request_id, **(headers or {})},
    )


# --- Error mapping ---
@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after:
        headers = {"Retry-After": str(retry_after)}
    return _error_response(request, exc.status_code, exc.message, headers)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.bind(errors=len(exc.errors())).info("request.validation_error")
    return _error_response(request, InvalidInput.status_code, "Invalid request body")


@app.exception_handler(HTTPException)
async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(
        request, exc.status_code, str(exc.detail), getattr(exc, "headers", None)
    )


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    if isinstance(exc, OperationalError):
        logger.exception("Task store unavailable")
        error: AppError = Unavailable()
    else:
        logger.exception("Task store failure")
        error = Internal()
    return _error_response(request, error.status_code, error.message)


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Correlation / tracing
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    # The Authorization header and request bodies are never logged
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
                identity_id=getattr(request.state, "identity_id", None),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"msg": Internal.default_message, "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


# --- Router registration ---
app.include_router(health_router)
app.include_router(auth_router, prefix="/api/auth")
app.include_router(todos_router, prefix="/api/todos")


def build_dependencies() -> ApplicationDependencies:
    """Construct the process-wide services from the current configuration."""
    config = get_config()
    secret = resolve_signing_secret(config)
    return ApplicationDependencies(
        database_service=DbSessionService(config=config),
        jwt_generation_service=JwtGeneratorService(secret, config.jwt),
        jwt_verify_service=JwtVerificationService(secret, config.jwt),
        bcrypt_rounds=config.security.bcrypt_rounds,
    )


# --- Lifecycle hooks ---
async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    # Tests may install their own dependencies before the app starts
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = build_dependencies()

    deps: ApplicationDependencies = app.state.app_dependencies
    DbManageService(deps.database_service.engine).create_all()

    configure_rate_limiter()


async def shutdown() -> None:
    logger.info("Shutting down application")
    await close_rate_limiter()


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        app,
        host=config.app.host,
        port=config.app.port,
        access_log=False,  # We handle access logging in middleware
    )
