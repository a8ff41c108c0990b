from __future__ import annotations

from fastapi import Depends, Header

from app.ai.factory import get_ai_client
from app.ai.types import AIClient
from app.core.config import settings
from app.core.errors import AnalysisFailed
from app.core.security import bearer_token, check_api_key
from app.integrations.supabase_backend import (
    SupabaseAuthProvider,
    SupabaseObjectStorage,
    SupabaseStore,
    get_supabase_client,
)
from app.integrations.types import AuthenticatedUser, AuthProvider, ObjectStorage, RecordStore


def get_store() -> RecordStore:
    return SupabaseStore(get_supabase_client())


def get_storage() -> ObjectStorage:
    return SupabaseObjectStorage(
        get_supabase_client(),
        settings.resumes_bucket,
        timeout_s=settings.storage_http_timeout_s,
    )


def get_auth_provider() -> AuthProvider:
    return SupabaseAuthProvider(get_supabase_client())


def get_analyzer() -> AIClient:
    try:
        return get_ai_client()
    except (RuntimeError, ValueError) as exc:
        raise AnalysisFailed("AI provider is not configured", details=str(exc)) from exc


def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return bearer_token(authorization)


def get_current_user(
    token: str = Depends(get_bearer_token),
    auth: AuthProvider = Depends(get_auth_provider),
) -> AuthenticatedUser:
    return auth.get_user(token)


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)
