"""Core services exports."""

from .credentials.credential_service import CredentialService
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService
from .jwt.jwt_gen import JwtGeneratorService
from .jwt.jwt_verify import JwtVerificationService
from .tasks.task_service import TaskService

__all__ = [
    # Credential Services
    "CredentialService",
    # JWT Services
    "JwtGeneratorService",
    "JwtVerificationService",
    # Task Services
    "TaskService",
    # Database Services
    "DbManageService",
    "DbSessionService",
]
