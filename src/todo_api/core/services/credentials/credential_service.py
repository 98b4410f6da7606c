from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.todo_api.core.errors import Conflict, InvalidInput, Unauthorized
from src.todo_api.core.security import (
    dummy_password_check,
    hash_password,
    password_too_long,
    verify_password,
)
from src.todo_api.entities.core.identity.entity import Identity
from src.todo_api.entities.core.identity.repository import IdentityRepository

BAD_CREDENTIALS = "Bad credentials"
EMAIL_TAKEN = "Email already taken"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialService:
    """Registers identities and checks password credentials.

    The service owns the transaction boundary for registration: the new
    identity is committed before it is returned.
    """

    def __init__(self, db_session: Session, bcrypt_rounds: int = 10):
        self._db_session = db_session
        self._identity_repo = IdentityRepository(db_session)
        self._bcrypt_rounds = bcrypt_rounds

    def register(self, display_name: str, email: str, password: str) -> Identity:
        """Create a new identity from a password credential.

        Args:
            display_name: Name shown to the user
            email: Email address; compared and stored lowercase
            password: Plain text password, at most 72 bytes

        Returns:
            The persisted identity

        Raises:
            InvalidInput: If a field is empty or the password is too long
            Conflict: If the email is already registered
        """
        display_name = (display_name or "").strip()
        email = normalize_email(email or "")
        if not display_name or not email or not password or not password.strip():
            raise InvalidInput("Display name, email and password are required")
        if password_too_long(password):
            raise InvalidInput("Password must be at most 72 bytes")

        if self._identity_repo.get_by_email(email) is not None:
            raise Conflict(EMAIL_TAKEN)

        identity = Identity(
            display_name=display_name,
            email=email,
            password_digest=hash_password(password, rounds=self._bcrypt_rounds),
        )
        try:
            created = self._identity_repo.create(identity)
            self._db_session.commit()
        except IntegrityError as e:
            # Concurrent registration of the same email won the race
            self._db_session.rollback()
            raise Conflict(EMAIL_TAKEN) from e

        logger.info("Registered identity {}", created.id)
        return created

    def login(self, email: str, password: str) -> Identity:
        """Return the identity whose credentials match.

        Raises:
            Unauthorized: With the same message whether the email is unknown
                or the password is wrong
        """
        identity = self._identity_repo.get_by_email(normalize_email(email or ""))
        if identity is None:
            dummy_password_check(password or "", rounds=self._bcrypt_rounds)
            logger.info("Login failed")
            raise Unauthorized(BAD_CREDENTIALS)

        if not verify_password(password or "", identity.password_digest):
            logger.info("Login failed for identity {}", identity.id)
            raise Unauthorized(BAD_CREDENTIALS)

        return identity
