import time

import pytest
from authlib.jose import JsonWebToken

from src.todo_api.core.errors import InvalidToken, Unauthorized
from src.todo_api.core.services import JwtGeneratorService, JwtVerificationService
from src.todo_api.core.services.jwt import preview_jwt
from src.todo_api.entities.core.identity import Identity
from src.todo_api.runtime.config.config_data import ConfigData, JWTConfig
from src.todo_api.runtime.context import with_context
from tests.utils import b64url, decode_segment, tamper_payload, tamper_signature

SEVEN_DAYS = 7 * 24 * 3600


@pytest.fixture
def identity() -> Identity:
    return Identity(
        display_name="Alice",
        email="alice@example.com",
        password_digest="$2b$04$unused",
    )


class TestTokenIssue:
    """Token generation."""

    def test_issue_embeds_identity_and_fixed_window(
        self, jwt_generate_service: JwtGeneratorService, identity: Identity, issuer: str
    ):
        now = 1_700_000_000
        token = jwt_generate_service.issue(identity, now=now)

        header, payload, _ = token.split(".")
        assert decode_segment(header)["alg"] == "HS256"
        claims = decode_segment(payload)
        assert claims["sub"] == identity.id
        assert claims["email"] == "alice@example.com"
        assert claims["iat"] == now
        assert claims["exp"] == now + SEVEN_DAYS
        assert claims["iss"] == issuer
        assert set(claims) == {"sub", "email", "iat", "exp", "iss"}

    def test_password_digest_never_in_token(
        self, jwt_generate_service: JwtGeneratorService, identity: Identity
    ):
        token = jwt_generate_service.issue(identity)
        assert "password" not in str(decode_segment(token.split(".")[1]))

    def test_signing_is_deterministic(
        self, jwt_generate_service: JwtGeneratorService, identity: Identity
    ):
        first = jwt_generate_service.issue(identity, now=1000)
        second = jwt_generate_service.issue(identity, now=1000)
        assert first == second
        assert jwt_generate_service.issue(identity, now=1001) != first

    def test_empty_secret_rejected(self, jwt_config: JWTConfig):
        with pytest.raises(ValueError):
            JwtGeneratorService("", jwt_config)
        with pytest.raises(ValueError):
            JwtVerificationService("", jwt_config)

    def test_config_defaults_come_from_context(self, identity: Identity):
        with with_context(ConfigData(jwt=JWTConfig(expires_in_seconds=60))):
            service = JwtGeneratorService("context-secret")

        assert service.expires_in_seconds == 60
        claims = preview_jwt(service.issue(identity, now=0)).claims
        assert claims["exp"] == 60


class TestTokenVerify:
    """Token verification and rejection paths."""

    def test_roundtrip(
        self,
        jwt_generate_service: JwtGeneratorService,
        jwt_verify_service: JwtVerificationService,
        identity: Identity,
    ):
        token = jwt_generate_service.issue(identity)
        claims = jwt_verify_service.verify(token)

        assert claims.identity_id == identity.id
        assert claims.email == identity.email
        assert claims.expires_at - claims.issued_at == SEVEN_DAYS
        assert not claims.is_expired()

    def test_expired_token_rejected(
        self,
        jwt_generate_service: JwtGeneratorService,
        jwt_verify_service: JwtVerificationService,
        identity: Identity,
    ):
        issued = int(time.time()) - SEVEN_DAYS - 60
        token = jwt_generate_service.issue(identity, now=issued)

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token)

    def test_token_expires_exactly_at_window_end(
        self,
        jwt_generate_service: JwtGeneratorService,
        jwt_verify_service: JwtVerificationService,
        identity: Identity,
    ):
        issued = 1_700_000_000
        token = jwt_generate_service.issue(identity, now=issued)

        assert jwt_verify_service.verify(token, now=issued + SEVEN_DAYS - 1)
        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token, now=issued + SEVEN_DAYS)

    def test_tampered_signature_rejected(
        self,
        jwt_generate_service: JwtGeneratorService,
        jwt_verify_service: JwtVerificationService,
        identity: Identity,
    ):
        token = tamper_signature(jwt_generate_service.issue(identity))

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token)

    def test_tampered_payload_rejected(
        self,
        jwt_generate_service: JwtGeneratorService,
        jwt_verify_service: JwtVerificationService,
        identity: Identity,
    ):
        token = tamper_payload(jwt_generate_service.issue(identity), sub="someone-else")

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token)

    def test_token_from_other_secret_rejected(
        self,
        jwt_verify_service: JwtVerificationService,
        jwt_config: JWTConfig,
        identity: Identity,
    ):
        other = JwtGeneratorService("another-secret-0123456789abcdef", jwt_config)

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(other.issue(identity))

    def test_wrong_algorithm_rejected(
        self,
        signing_secret: str,
        jwt_verify_service: JwtVerificationService,
        issuer: str,
    ):
        now = int(time.time())
        payload = {"iss": issuer, "sub": "x", "iat": now, "exp": now + 60}
        token = JsonWebToken(["HS512"]).encode({"alg": "HS512"}, payload, signing_secret)

        with pytest.raises(InvalidToken, match="algorithm"):
            jwt_verify_service.verify(token.decode("utf-8"))

    def test_unsigned_token_rejected(
        self, jwt_verify_service: JwtVerificationService, issuer: str
    ):
        now = int(time.time())
        token = (
            f"{b64url({'alg': 'none', 'typ': 'JWT'})}."
            f"{b64url({'iss': issuer, 'sub': 'x', 'iat': now, 'exp': now + 60})}."
        )

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token)

    def test_wrong_issuer_rejected(
        self,
        signing_secret: str,
        jwt_verify_service: JwtVerificationService,
        identity: Identity,
    ):
        foreign = JwtGeneratorService(
            signing_secret, JWTConfig(gen_issuer="someone-else")
        )

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(foreign.issue(identity))

    def test_missing_subject_rejected(
        self,
        signing_secret: str,
        jwt_verify_service: JwtVerificationService,
        issuer: str,
    ):
        now = int(time.time())
        payload = {"iss": issuer, "iat": now, "exp": now + 60}
        token = JsonWebToken(["HS256"]).encode({"alg": "HS256"}, payload, signing_secret)

        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token.decode("utf-8"))

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "abc",
            "a.b",
            "a.b.c.d",
            "a..c",
            "has space.b.c",
            "a" * 5000,
            f"{b64url({'alg': 'HS256'})}.!!!.sig",
            "bm90LWpzb24.e30.c2ln",
            f"{b64url({'alg': 'HS256'})}.WzEsMl0.c2ln",
        ],
    )
    def test_malformed_tokens_rejected(
        self, jwt_verify_service: JwtVerificationService, token: str
    ):
        with pytest.raises(InvalidToken):
            jwt_verify_service.verify(token)

    def test_invalid_token_is_unauthorized(self):
        assert issubclass(InvalidToken, Unauthorized)
        assert InvalidToken().status_code == 401

    def test_clock_skew_extends_expiry(
        self, signing_secret: str, issuer: str, identity: Identity
    ):
        config = JWTConfig(gen_issuer=issuer, clock_skew=30)
        generator = JwtGeneratorService(signing_secret, config)
        verifier = JwtVerificationService(signing_secret, config)
        token = generator.issue(identity, now=1000)

        assert verifier.verify(token, now=1000 + SEVEN_DAYS + 10)
        with pytest.raises(InvalidToken):
            verifier.verify(token, now=1000 + SEVEN_DAYS + 30)
