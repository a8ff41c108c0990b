from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union


@dataclass(frozen=True)
class ResumeRecord:
    id: str
    owner_id: str
    file_name: str | None = None
    file_url: str | None = None
    file_type: str | None = None
    file_size_bytes: int | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ResumeRecord":
        """Build a record from a ``resumes`` table row."""
        size = row.get("file_size")
        try:
            size_bytes = int(size) if size is not None else None
        except (TypeError, ValueError):
            size_bytes = None
        return cls(
            id=str(row.get("id") or ""),
            owner_id=str(row.get("user_id") or ""),
            file_name=(row.get("file_name") or None),
            file_url=(row.get("resume_url") or None),
            file_type=(row.get("file_type") or None),
            file_size_bytes=size_bytes,
            created_at=(str(row["created_at"]) if row.get("created_at") else None),
        )


@dataclass(frozen=True)
class StoredFileCandidate:
    name: str


@dataclass(frozen=True)
class Resolved:
    content: bytes
    method_used: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    attempted_methods: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return False


ResolutionOutcome = Union[Resolved, Failed]


@dataclass
class AttemptLog:
    """Diagnostics collected by one strategy while it runs."""

    attempted_methods: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def record(self, method: str, error: str) -> None:
        if method not in self.attempted_methods:
            self.attempted_methods.append(method)
        self.errors.append(f"{method}: {error}")

    def failed(self) -> Failed:
        return Failed(attempted_methods=tuple(self.attempted_methods), errors=tuple(self.errors))
