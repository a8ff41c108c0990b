from __future__ import annotations

from fastapi import HTTPException, status

from app.core.config import settings
from app.core.errors import NotAuthenticated


def check_api_key(x_api_key: str | None) -> None:
    if not settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key is not configured.",
        )
    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid API key",
        )


def bearer_token(authorization: str | None) -> str:
    value = (authorization or "").strip()
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise NotAuthenticated(details="Missing bearer token")
    return token.strip()
