"""Identity repository."""

from sqlmodel import Session, select

from src.todo_api.entities.core.identity.entity import Identity
from src.todo_api.entities.core.identity.table import IdentityTable


class IdentityRepository:
    """Data-access layer for identities."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, identity_id: str) -> Identity | None:
        row = self._session.get(IdentityTable, identity_id)
        if row is None:
            return None
        return Identity.model_validate(row, from_attributes=True)

    def get_by_email(self, email: str) -> Identity | None:
        statement = select(IdentityTable).where(IdentityTable.email == email)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Identity.model_validate(row, from_attributes=True)

    def create(self, identity: Identity) -> Identity:
        """Stage a new identity; the unique email index is checked on flush."""
        row = IdentityTable(**identity.model_dump())
        self._session.add(row)
        self._session.flush()
        return Identity.model_validate(row, from_attributes=True)
