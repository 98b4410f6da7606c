"""Identity database table model."""

from sqlmodel import Field

from src.todo_api.entities.core._base import EntityTable


class IdentityTable(EntityTable, table=True):
    """Database persistence model for identities.

    The unique index on ``email`` enforces case-insensitive uniqueness because
    emails are lowercased before they reach the store.
    """

    __tablename__ = "identities"

    display_name: str
    email: str = Field(unique=True, index=True)
    password_digest: str
