"""Security utilities: password digests and signing secrets."""

import base64
import secrets

import bcrypt
from loguru import logger

from src.todo_api.runtime.config.config_data import ConfigData

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72

_DUMMY_DIGEST: str | None = None


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        URL-safe base64 encoded token
    """
    return (
        base64.urlsafe_b64encode(secrets.token_bytes(length))
        .decode("utf-8")
        .rstrip("=")
    )


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = 10) -> str:
    """Derive a salted bcrypt digest for ``password``.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (log2 of the iteration count)

    Returns:
        The bcrypt digest, salt and cost included, as text

    Raises:
        ValueError: If the password exceeds bcrypt's 72-byte input limit
    """
    if password_too_long(password):
        raise ValueError("Password exceeds 72 bytes")
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_digest: str) -> bool:
    """Check ``password`` against a stored bcrypt digest in constant time."""
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(
            password.encode("utf-8"), password_digest.encode("utf-8")
        )
    except ValueError:
        # Malformed digest in the store
        logger.error("Stored password digest is not a valid bcrypt hash")
        return False


def dummy_password_check(password: str, rounds: int = 10) -> None:
    """Spend the same bcrypt work as a real check when no identity exists."""
    global _DUMMY_DIGEST
    if _DUMMY_DIGEST is None:
        _DUMMY_DIGEST = hash_password(generate_secure_token(16), rounds=rounds)
    verify_password(password, _DUMMY_DIGEST)


def resolve_signing_secret(config: ConfigData) -> str:
    """Return the token signing secret for this process.

    A configured secret is used as-is, so tokens survive restarts. Without
    one, production refuses to start; other environments get a fresh random
    secret, which invalidates every previously issued token on restart.
    """
    secret = config.app.session_signing_secret
    environment = config.app.environment

    if secret:
        if len(secret) < config.security.min_secret_length:
            logger.warning(
                "Token signing secret is shorter than {} characters",
                config.security.min_secret_length,
            )
        return secret

    if environment == "production":
        raise RuntimeError("JWT_SECRET must be configured in production")

    logger.warning(
        "No JWT_SECRET supplied; using a random signing secret for this process. "
        "Issued tokens will stop working when the process restarts."
    )
    return secrets.token_hex(64)
