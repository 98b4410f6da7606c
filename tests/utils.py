import base64
import json
from typing import Any

from fastapi.testclient import TestClient


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(
    client: TestClient,
    email: str,
    password: str,
    display_name: str = "Test User",
) -> dict[str, Any]:
    """Register through the API and return the response body."""
    response = client.post(
        "/api/auth/register",
        json={"displayName": display_name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def b64url(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def decode_segment(segment: str) -> dict[str, Any]:
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def tamper_signature(token: str) -> str:
    """Change the first signature character so the decoded bytes differ."""
    head, payload, sig = token.split(".")
    replacement = "A" if sig[0] != "A" else "B"
    return f"{head}.{payload}.{replacement}{sig[1:]}"


def tamper_payload(token: str, **claims: Any) -> str:
    """Rewrite payload claims while keeping the original signature."""
    head, payload, sig = token.split(".")
    data = decode_segment(payload)
    data.update(claims)
    return f"{head}.{b64url(data)}.{sig}"
