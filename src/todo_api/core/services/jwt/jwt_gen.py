import time

from authlib.jose import JoseError, JsonWebToken
from loguru import logger

from src.todo_api.core.errors import Internal
from src.todo_api.entities.core.identity import Identity
from src.todo_api.runtime.config.config_data import JWTConfig
from src.todo_api.runtime.context import get_config


class JwtGeneratorService:
    """Issues signed, time-bounded identity tokens.

    The signing secret is process-scoped configuration handed in at
    construction; it is never read from module state.
    """

    def __init__(self, secret: str, jwt_config: JWTConfig | None = None) -> None:
        if not secret:
            raise ValueError("JWT signing secret must not be empty")
        self._secret = secret
        self._config = jwt_config or get_config().jwt
        self._jwt = JsonWebToken([self._config.algorithm])

    @property
    def expires_in_seconds(self) -> int:
        return self._config.expires_in_seconds

    def issue(self, identity: Identity, *, now: int | None = None) -> str:
        """Generate a signed token asserting ``identity``.

        Args:
            identity: The identity the token is issued for
            now: Issuance time in epoch seconds (defaults to the current time)

        Returns:
            Compact JWT carrying ``sub`` (identity id), ``email``, ``iat``,
            ``exp`` and ``iss``; equal inputs give an identical token

        Raises:
            Internal: If signing fails
        """
        issued_at = int(time.time()) if now is None else now
        payload = {
            "iss": self._config.gen_issuer,
            "sub": identity.id,
            "email": identity.email,
            "iat": issued_at,
            "exp": issued_at + self._config.expires_in_seconds,
        }
        header = {"alg": self._config.algorithm, "typ": "JWT"}

        try:
            token = self._jwt.encode(header, payload, self._secret)
        except JoseError as e:
            logger.exception("JWT encoding failed")
            raise Internal() from e

        return token.decode() if isinstance(token, bytes) else token
