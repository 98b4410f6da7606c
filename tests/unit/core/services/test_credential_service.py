"""Registration and login through the credential service."""

import pytest
from sqlmodel import Session, select

from src.todo_api.core.errors import Conflict, InvalidInput, Unauthorized
from src.todo_api.core.services import CredentialService
from src.todo_api.entities.core.identity import IdentityTable


class TestRegister:
    def test_register_persists_identity(
        self, credential_service: CredentialService, session: Session
    ):
        identity = credential_service.register("Alice", "alice@example.com", "pw1")

        row = session.get(IdentityTable, identity.id)
        assert row is not None
        assert row.display_name == "Alice"
        assert row.email == "alice@example.com"
        assert row.password_digest != "pw1"
        assert row.password_digest.startswith("$2b$")

    def test_email_is_trimmed_and_lowercased(
        self, credential_service: CredentialService
    ):
        identity = credential_service.register(
            "  Alice  ", "  Alice@Example.COM ", "pw1"
        )

        assert identity.email == "alice@example.com"
        assert identity.display_name == "Alice"

    def test_duplicate_email_any_case_conflicts(
        self, credential_service: CredentialService, session: Session
    ):
        credential_service.register("Alice", "alice@example.com", "pw1")

        with pytest.raises(Conflict, match="Email already taken"):
            credential_service.register("Other", "ALICE@example.com", "pw2")

        rows = session.exec(select(IdentityTable)).all()
        assert len(rows) == 1

    def test_unique_index_violation_maps_to_conflict(
        self, credential_service: CredentialService, monkeypatch
    ):
        credential_service.register("Alice", "alice@example.com", "pw1")
        # Simulate a concurrent registration that passed the lookup first
        monkeypatch.setattr(
            credential_service._identity_repo, "get_by_email", lambda email: None
        )

        with pytest.raises(Conflict, match="Email already taken"):
            credential_service.register("Alice 2", "alice@example.com", "pw1")

    @pytest.mark.parametrize(
        "display_name,email,password",
        [
            ("", "a@example.com", "pw"),
            ("   ", "a@example.com", "pw"),
            ("Alice", "", "pw"),
            ("Alice", "a@example.com", ""),
            ("Alice", "a@example.com", "   "),
        ],
    )
    def test_empty_fields_rejected(
        self,
        credential_service: CredentialService,
        display_name: str,
        email: str,
        password: str,
    ):
        with pytest.raises(InvalidInput):
            credential_service.register(display_name, email, password)

    def test_password_over_72_bytes_rejected(
        self, credential_service: CredentialService
    ):
        with pytest.raises(InvalidInput, match="72"):
            credential_service.register("Alice", "a@example.com", "x" * 73)


class TestLogin:
    def test_login_returns_registered_identity(
        self, credential_service: CredentialService
    ):
        registered = credential_service.register("Bob", "bob@example.com", "pw2")

        identity = credential_service.login("bob@example.com", "pw2")

        assert identity == registered

    def test_login_email_is_case_insensitive(
        self, credential_service: CredentialService
    ):
        registered = credential_service.register("Bob", "bob@example.com", "pw2")
        assert credential_service.login(" BOB@example.com", "pw2").id == registered.id

    def test_unknown_email_and_wrong_password_are_indistinguishable(
        self, credential_service: CredentialService
    ):
        credential_service.register("Bob", "bob@example.com", "pw2")

        with pytest.raises(Unauthorized) as wrong_password:
            credential_service.login("bob@example.com", "nope")
        with pytest.raises(Unauthorized) as unknown_email:
            credential_service.login("nobody@example.com", "pw2")

        assert wrong_password.value.message == "Bad credentials"
        assert unknown_email.value.message == wrong_password.value.message
        assert unknown_email.value.status_code == wrong_password.value.status_code

    def test_password_is_case_sensitive(self, credential_service: CredentialService):
        credential_service.register("Bob", "bob@example.com", "Secret")

        with pytest.raises(Unauthorized):
            credential_service.login("bob@example.com", "secret")

    def test_oversized_password_fails_like_wrong_password(
        self, credential_service: CredentialService
    ):
        credential_service.register("Bob", "bob@example.com", "pw2")

        with pytest.raises(Unauthorized, match="Bad credentials"):
            credential_service.login("bob@example.com", "pw2" + "x" * 80)
