"""JWT service package."""

from .jwt_gen import JwtGeneratorService
from .jwt_utils import JwtPreview, preview_jwt
from .jwt_verify import JwtVerificationService

__all__ = [
    "JwtGeneratorService",
    "JwtPreview",
    "JwtVerificationService",
    "preview_jwt",
]
