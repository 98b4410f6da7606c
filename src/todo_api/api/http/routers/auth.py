"""Registration and login endpoints issuing bearer tokens."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.todo_api.api.http.deps import (
    get_credential_service,
    get_jwt_generation_service,
)
from src.todo_api.api.http.middleware.limiter import rate_limit
from src.todo_api.core.services import CredentialService, JwtGeneratorService
from src.todo_api.entities.core.identity import Identity

router = APIRouter(tags=["auth"], dependencies=[Depends(rate_limit())])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(_CamelModel):
    display_name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(_CamelModel):
    email: str = ""
    password: str = ""


class AuthUser(_CamelModel):
    """Public view of an identity. Never carries the password digest."""

    id: str
    display_name: str
    email: str


class AuthResponse(_CamelModel):
    token: str
    user: AuthUser


def _auth_response(identity: Identity, token: str) -> AuthResponse:
    return AuthResponse(
        token=token,
        user=AuthUser(
            id=identity.id,
            display_name=identity.display_name,
            email=identity.email,
        ),
    )


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
def register(
    body: RegisterRequest,
    credentials: CredentialService = Depends(get_credential_service),
    jwt_gen: JwtGeneratorService = Depends(get_jwt_generation_service),
) -> AuthResponse:
    """Create an identity and return a token for it."""
    identity = credentials.register(body.display_name, body.email, body.password)
    return _auth_response(identity, jwt_gen.issue(identity))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    credentials: CredentialService = Depends(get_credential_service),
    jwt_gen: JwtGeneratorService = Depends(get_jwt_generation_service),
) -> AuthResponse:
    """Exchange an email and password for a token."""
    identity = credentials.login(body.email, body.password)
    return _auth_response(identity, jwt_gen.issue(identity))
