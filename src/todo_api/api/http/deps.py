"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request
from loguru import logger
from sqlmodel import Session

from src.todo_api.api.http.app_data import ApplicationDependencies
from src.todo_api.core.errors import InvalidToken, Unauthorized
from src.todo_api.core.services import (
    CredentialService,
    DbSessionService,
    JwtGeneratorService,
    JwtVerificationService,
    TaskService,
)

NO_TOKEN = "No token supplied"
INVALID_TOKEN = "Invalid token"


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_database_service(request: Request) -> DbSessionService:
    """Get the database service instance."""
    return get_app_dependencies(request).database_service


def get_db_session(
    database_service: DbSessionService = Depends(get_database_service),
) -> Iterator[Session]:
    """One session per request, rolled back on error and always closed."""
    with database_service.session_scope() as session:
        yield session


def get_jwt_generation_service(request: Request) -> JwtGeneratorService:
    """Get the JWT generation service instance."""
    return get_app_dependencies(request).jwt_generation_service


def get_jwt_verify_service(request: Request) -> JwtVerificationService:
    """Get the JWT verification service instance."""
    return get_app_dependencies(request).jwt_verify_service


def get_credential_service(
    request: Request,
    db_session: Session = Depends(get_db_session),
) -> CredentialService:
    return CredentialService(db_session, get_app_dependencies(request).bcrypt_rounds)


def get_task_service(db_session: Session = Depends(get_db_session)) -> TaskService:
    return TaskService(db_session)


def authenticate(raw_header: str | None, verifier: JwtVerificationService) -> str:
    """Resolve the identity id asserted by an ``Authorization`` header.

    Args:
        raw_header: The header value, ``Bearer <token>``
        verifier: Service used to check the token

    Returns:
        The identity id carried in the token's ``sub`` claim

    Raises:
        Unauthorized: ``No token supplied`` when the header is missing or not
            a bearer credential, ``Invalid token`` when verification fails
    """
    scheme, _, token = (raw_header or "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized(NO_TOKEN)

    try:
        claims = verifier.verify(token)
    except InvalidToken as e:
        logger.info("Rejected bearer token: {}", e.message)
        raise Unauthorized(INVALID_TOKEN) from e

    return claims.identity_id


def get_current_identity_id(
    request: Request,
    verifier: JwtVerificationService = Depends(get_jwt_verify_service),
) -> str:
    """Authenticate the request using a Bearer token."""
    identity_id = authenticate(request.headers.get("Authorization"), verifier)
    request.state.identity_id = identity_id
    return identity_id
