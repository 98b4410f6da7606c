"""JWT verification service."""

import time

from authlib.jose import JoseError, JsonWebToken
from loguru import logger

from src.todo_api.core.errors import InvalidToken
from src.todo_api.core.models.token import TokenClaims
from src.todo_api.core.services.jwt.jwt_utils import preview_jwt
from src.todo_api.runtime.config.config_data import JWTConfig
from src.todo_api.runtime.context import get_config


class JwtVerificationService:
    """Verifies tokens issued by :class:`JwtGeneratorService`.

    There is no revocation: a validly signed token is accepted until it
    expires.
    """

    def __init__(self, secret: str, jwt_config: JWTConfig | None = None) -> None:
        if not secret:
            raise ValueError("JWT signing secret must not be empty")
        self._secret = secret
        self._config = jwt_config or get_config().jwt
        self._jwt = JsonWebToken([self._config.algorithm])

    def verify(self, token: str, *, now: int | None = None) -> TokenClaims:
        """Verify signature, structure, issuer and expiry of ``token``.

        Raises:
            InvalidToken: On any verification failure. The message is for
                server-side logs; callers surface a generic one.
        """
        pv = preview_jwt(token)

        if pv.alg != self._config.algorithm:
            raise InvalidToken("Disallowed JWT algorithm")

        claims_options = {
            "iss": {"essential": True, "value": self._config.gen_issuer},
            "sub": {"essential": True},
            "iat": {"essential": True},
            "exp": {"essential": True},
        }

        current = int(time.time()) if now is None else now
        try:
            claims = self._jwt.decode(
                token, self._secret, claims_options=claims_options
            )
            claims.validate(now=current, leeway=self._config.clock_skew)
        except (JoseError, ValueError) as exc:
            raise InvalidToken(f"JWT error: {exc}") from exc

        # authlib accepts exp == now - leeway; tokens at the boundary are expired
        exp = claims.get("exp")
        if not isinstance(exp, int) or current >= exp + self._config.clock_skew:
            raise InvalidToken("Token expired")

        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub:
            raise InvalidToken("Missing sub claim")

        logger.debug("Verified token for identity {}", sub)
        return TokenClaims(
            identity_id=sub,
            email=claims.get("email"),
            issuer=claims["iss"],
            issued_at=int(claims["iat"]),
            expires_at=int(exp),
        )
