"""Verified token claims."""

import time

from pydantic import BaseModel, Field


class TokenClaims(BaseModel):
    """Claims of a verified identity token.

    A token is a capability: anyone presenting a validly signed, unexpired
    token acts as ``identity_id``.
    """

    identity_id: str = Field(description="Identity id (the 'sub' claim)")
    email: str | None = Field(default=None, description="Email at issuance")
    issuer: str = Field(description="Issuer ('iss')")
    issued_at: int = Field(description="Issuance time, epoch seconds ('iat')")
    expires_at: int = Field(description="Expiry time, epoch seconds ('exp')")

    def is_expired(self, now: int | None = None) -> bool:
        return (now if now is not None else int(time.time())) >= self.expires_at
