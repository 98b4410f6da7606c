"""Identity domain entity."""

from typing import Any

from pydantic import Field

from src.todo_api.entities.core._base import Entity


class Identity(Entity):
    """A registered user, identified by a unique (lowercase) email.

    Identities are created once by registration and never mutated afterwards.
    """

    display_name: str = Field(description="Name shown to the user")
    email: str = Field(description="Lowercase email address, unique")
    password_digest: str = Field(
        description="bcrypt digest of the password", repr=False
    )

    def __eq__(self, other: Any) -> bool:
        """Compare identities by business attributes, ignoring timestamps."""
        if not isinstance(other, Identity):
            return False

        return (
            self.id == other.id
            and self.display_name == other.display_name
            and self.email == other.email
        )

    def __hash__(self) -> int:
        return hash((self.id, self.display_name, self.email))
