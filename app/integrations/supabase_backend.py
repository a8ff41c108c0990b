from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Mapping

import httpx
from supabase import Client, create_client

from app.core.config import settings
from app.core.errors import CareerCoachError, NotAuthenticated, StorageQueryFailed
from app.integrations.types import AuthenticatedUser, Row, StorageAccessError
from app.resumes.models import StoredFileCandidate

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise CareerCoachError(
            "Server configuration error",
            details="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set",
        )
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


class SupabaseStore:
    """Single-table reads and writes over the Supabase PostgREST API."""

    def __init__(self, client: Client):
        self._client = client

    def select(
        self,
        table: str,
        filters: Mapping[str, Any],
        *,
        columns: str = "*",
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        try:
            query = self._client.table(table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, value)
            if order_by:
                query = query.order(order_by)
            if limit:
                query = query.limit(limit)
            response = query.execute()
        except Exception as exc:
            logger.warning("supabase_select_failed table=%s: %s", table, exc)
            raise StorageQueryFailed(details=str(exc)) from exc
        return list(response.data or [])

    def select_prefix(self, table: str, column: str, prefix: str) -> list[Row]:
        try:
            response = self._client.table(table).select("*").ilike(column, f"{prefix}%").execute()
        except Exception as exc:
            logger.warning("supabase_prefix_select_failed table=%s: %s", table, exc)
            raise StorageQueryFailed(details=str(exc)) from exc
        return list(response.data or [])

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        try:
            response = self._client.table(table).insert(dict(row)).execute()
        except Exception as exc:
            logger.warning("supabase_insert_failed table=%s: %s", table, exc)
            raise StorageQueryFailed(details=str(exc)) from exc
        data = list(response.data or [])
        return data[0] if data else dict(row)

    def update(self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]) -> list[Row]:
        try:
            query = self._client.table(table).update(dict(values))
            for column, value in filters.items():
                query = query.eq(column, value)
            response = query.execute()
        except Exception as exc:
            logger.warning("supabase_update_failed table=%s: %s", table, exc)
            raise StorageQueryFailed(details=str(exc)) from exc
        return list(response.data or [])


class SupabaseObjectStorage:
    def __init__(self, client: Client, bucket: str, *, timeout_s: float = 15.0):
        self._client = client
        self.bucket = bucket
        self._timeout_s = timeout_s

    def fetch_url(self, url: str) -> bytes:
        try:
            with httpx.Client(timeout=self._timeout_s, follow_redirects=True) as client:
                response = client.get(url)
        except httpx.HTTPError as exc:
            raise StorageAccessError(f"fetch failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise StorageAccessError(f"HTTP {response.status_code}")
        return response.content

    def download(self, path: str) -> bytes:
        try:
            content = self._client.storage.from_(self.bucket).download(path)
        except Exception as exc:
            raise StorageAccessError(f"download failed: {exc}") from exc
        if not content:
            raise StorageAccessError("download returned no content")
        return content

    def list(self, limit: int) -> list[StoredFileCandidate]:
        try:
            entries = self._client.storage.from_(self.bucket).list(
                None,
                {"limit": limit, "offset": 0, "sortBy": {"column": "name", "order": "asc"}},
            )
        except Exception as exc:
            raise StorageAccessError(f"listing failed: {exc}") from exc
        return [StoredFileCandidate(name=str(entry["name"])) for entry in entries or [] if entry.get("name")]


class SupabaseAuthProvider:
    def __init__(self, client: Client):
        self._client = client

    def get_user(self, token: str) -> AuthenticatedUser:
        try:
            response = self._client.auth.get_user(token)
        except Exception as exc:
            logger.info("supabase_auth_rejected: %s", exc)
            raise NotAuthenticated(details="Invalid or expired token") from exc
        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            raise NotAuthenticated(details="No user found in session")
        return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None))
