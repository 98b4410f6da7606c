"""Tests for password digests and signing-secret resolution."""

import bcrypt
import pytest

from src.todo_api.core import security
from src.todo_api.core.security import (
    BCRYPT_MAX_PASSWORD_BYTES,
    dummy_password_check,
    generate_secure_token,
    hash_password,
    password_too_long,
    resolve_signing_secret,
    verify_password,
)
from src.todo_api.runtime.config.config_data import AppConfig, ConfigData


class TestPasswordDigests:
    """bcrypt digest derivation and comparison."""

    def test_hash_is_salted_bcrypt(self):
        digest = hash_password("pw1", rounds=4)

        assert digest != "pw1"
        assert digest.startswith("$2b$04$")
        assert hash_password("pw1", rounds=4) != digest

    def test_verify_matches_only_original_password(self):
        digest = hash_password("correct horse", rounds=4)

        assert verify_password("correct horse", digest) is True
        assert verify_password("correct horse ", digest) is False
        assert verify_password("", digest) is False

    def test_cost_factor_is_recorded_in_digest(self):
        digest = hash_password("pw", rounds=5)
        assert digest.split("$")[2] == "05"

    def test_password_over_72_bytes_rejected(self):
        too_long = "é" * 37  # 74 bytes in UTF-8
        assert password_too_long(too_long)

        with pytest.raises(ValueError):
            hash_password(too_long, rounds=4)

    def test_password_at_limit_accepted(self):
        at_limit = "a" * BCRYPT_MAX_PASSWORD_BYTES
        assert not password_too_long(at_limit)
        assert verify_password(at_limit, hash_password(at_limit, rounds=4))

    def test_verify_long_password_is_false(self):
        digest = hash_password("a" * 72, rounds=4)
        assert verify_password("a" * 73, digest) is False

    def test_malformed_digest_is_false(self):
        assert verify_password("pw", "not-a-bcrypt-digest") is False

    def test_digest_interoperates_with_bcrypt(self):
        digest = hash_password("pw2", rounds=4)
        assert bcrypt.checkpw(b"pw2", digest.encode("utf-8"))

    def test_dummy_check_builds_digest_once(self, monkeypatch):
        monkeypatch.setattr(security, "_DUMMY_DIGEST", None)

        dummy_password_check("whatever", rounds=4)
        first = security._DUMMY_DIGEST
        dummy_password_check("something else", rounds=4)

        assert first is not None
        assert security._DUMMY_DIGEST == first


class TestSecureToken:
    def test_tokens_are_unique_and_unpadded(self):
        tokens = {generate_secure_token() for _ in range(20)}
        assert len(tokens) == 20
        assert all("=" not in t for t in tokens)


class TestSigningSecret:
    """Explicit secret lifecycle policy."""

    def test_configured_secret_is_used_verbatim(self):
        secret = "s" * 40
        config = ConfigData(app=AppConfig(session_signing_secret=secret))
        assert resolve_signing_secret(config) == secret

    def test_short_configured_secret_still_used(self):
        config = ConfigData(app=AppConfig(session_signing_secret="short"))
        assert resolve_signing_secret(config) == "short"

    def test_missing_secret_outside_production_is_random(self):
        config = ConfigData(app=AppConfig(environment="development"))

        first = resolve_signing_secret(config)
        second = resolve_signing_secret(config)

        assert len(first) == 128
        assert first != second

    def test_missing_secret_in_production_refuses_to_start(self):
        config = ConfigData(app=AppConfig(environment="production"))

        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            resolve_signing_secret(config)
