from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

from app.resumes.models import StoredFileCandidate

Row = dict[str, Any]


class StorageAccessError(RuntimeError):
    pass


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None = None


class AuthProvider(Protocol):
    def get_user(self, token: str) -> AuthenticatedUser: ...


class RecordStore(Protocol):
    def select(
        self,
        table: str,
        filters: Mapping[str, Any],
        *,
        columns: str = "*",
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Row]: ...

    def select_prefix(self, table: str, column: str, prefix: str) -> list[Row]: ...

    def insert(self, table: str, row: Mapping[str, Any]) -> Row: ...

    def update(self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]) -> list[Row]: ...


class ObjectStorage(Protocol):
    bucket: str

    def fetch_url(self, url: str) -> bytes: ...

    def download(self, path: str) -> bytes: ...

    def list(self, limit: int) -> Sequence[StoredFileCandidate]: ...
