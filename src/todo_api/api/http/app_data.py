from dataclasses import dataclass

from src.todo_api.core.services import (
    DbSessionService,
    JwtGeneratorService,
    JwtVerificationService,
)


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    jwt_generation_service: JwtGeneratorService
    jwt_verify_service: JwtVerificationService
    bcrypt_rounds: int = 10
