"""Obtain the raw bytes of an uploaded resume from object storage.

Uploaded files have reached storage under several naming schemes over time,
so the resolver walks an ordered list of strategies and stops at the first
one that yields bytes. Every failed sub-attempt is recorded so the caller can
report exactly what was tried.
"""
from __future__ import annotations

import logging
import re
from typing import Protocol, Sequence
from urllib.parse import unquote, urlparse

from app.integrations.types import ObjectStorage, StorageAccessError
from app.resumes.models import AttemptLog, Failed, ResolutionOutcome, Resolved, ResumeRecord

logger = logging.getLogger(__name__)

DIRECT_URL = "direct_url"
URL_PATH_EXTRACTION = "url_path_extraction"
FILENAME_PATTERNS_EXACT = "filename_patterns_exact"
FILENAME_PATTERNS_PARTIAL = "filename_patterns_partial"

_STORAGE_OBJECT_PATH = re.compile(r"/storage/v1/object/(?:public|sign|authenticated)/([^/]+)/(.+)$")
_TIMESTAMP_TOKEN = re.compile(r"^(\d+)-")


class ResolutionStrategy(Protocol):
    # Label for log lines. One strategy may report several methods.
    name: str

    def attempt(self, record: ResumeRecord) -> ResolutionOutcome: ...


def storage_path_from_url(url: str, bucket: str) -> str | None:
    """Return the decoded object path if ``url`` points into ``bucket``."""
    match = _STORAGE_OBJECT_PATH.search(urlparse(url).path or "")
    if not match or match.group(1) != bucket:
        return None
    path = unquote(match.group(2)).strip("/")
    return path or None


def timestamp_token_from_url(url: str | None) -> str | None:
    if not url:
        return None
    trailing = (urlparse(url).path or "").rstrip("/").split("/")[-1]
    match = _TIMESTAMP_TOKEN.match(unquote(trailing))
    return match.group(1) if match else None


def filename_candidates(file_name: str, file_url: str | None = None) -> list[str]:
    """Names the object may have been stored under, most literal first."""
    underscored = re.sub(r"\s+", "_", file_name.strip())
    names = [file_name, underscored]
    token = timestamp_token_from_url(file_url)
    if token:
        names.extend([f"{token}-{file_name}", f"{token}-{underscored}"])
    return list(dict.fromkeys(name for name in names if name))


def _short(exc: Exception) -> str:
    text = str(exc).strip() or exc.__class__.__name__
    return text[:240]


class DirectUrlStrategy:
    name = "stored_url"

    def __init__(self, storage: ObjectStorage):
        self._storage = storage

    def attempt(self, record: ResumeRecord) -> ResolutionOutcome:
        log = AttemptLog()
        url = record.file_url
        if not url:
            return log.failed()

        try:
            return Resolved(content=self._storage.fetch_url(url), method_used=DIRECT_URL)
        except StorageAccessError as exc:
            log.record(DIRECT_URL, _short(exc))

        path = storage_path_from_url(url, self._storage.bucket)
        if path is None:
            log.record(URL_PATH_EXTRACTION, "URL does not contain a storage object path")
            return log.failed()
        try:
            return Resolved(content=self._storage.download(path), method_used=URL_PATH_EXTRACTION)
        except StorageAccessError as exc:
            log.record(URL_PATH_EXTRACTION, f"{path}: {_short(exc)}")
        return log.failed()


class FilenamePatternStrategy:
    name = "filename_patterns"

    def __init__(self, storage: ObjectStorage, *, list_limit: int = 100):
        self._storage = storage
        self._list_limit = list_limit

    def attempt(self, record: ResumeRecord) -> ResolutionOutcome:
        log = AttemptLog()
        file_name = record.file_name
        if not file_name:
            return log.failed()

        candidates = filename_candidates(file_name, record.file_url)
        try:
            listed = [item.name for item in self._storage.list(self._list_limit)]
        except StorageAccessError as exc:
            log.record(FILENAME_PATTERNS_EXACT, f"listing failed: {_short(exc)}")
            return log.failed()

        tried: set[str] = set()
        wildcard_timestamp = timestamp_token_from_url(record.file_url) is None

        for candidate in candidates:
            for name in self._exact_matches(candidate, listed, wildcard_timestamp):
                if name in tried:
                    continue
                tried.add(name)
                content = self._download(name, FILENAME_PATTERNS_EXACT, log)
                if content is not None:
                    return Resolved(content=content, method_used=FILENAME_PATTERNS_EXACT)
        if not tried:
            log.record(FILENAME_PATTERNS_EXACT, f"no exact match among {len(listed)} listed objects")

        needles = list(dict.fromkeys([*candidates, file_name]))
        partial = next(
            (name for name in listed if name not in tried and any(needle in name for needle in needles)),
            None,
        )
        if partial is None:
            log.record(FILENAME_PATTERNS_PARTIAL, f"no partial match among {len(listed)} listed objects")
            return log.failed()
        content = self._download(partial, FILENAME_PATTERNS_PARTIAL, log)
        if content is not None:
            return Resolved(content=content, method_used=FILENAME_PATTERNS_PARTIAL)
        return log.failed()

    @staticmethod
    def _exact_matches(candidate: str, listed: Sequence[str], wildcard_timestamp: bool) -> list[str]:
        matches = [name for name in listed if name == candidate]
        if wildcard_timestamp:
            pattern = re.compile(r"^\d+-" + re.escape(candidate) + r"$")
            matches.extend(name for name in listed if pattern.match(name))
        return matches

    def _download(self, name: str, method: str, log: AttemptLog) -> bytes | None:
        try:
            return self._storage.download(name)
        except StorageAccessError as exc:
            log.record(method, f"{name}: {_short(exc)}")
            return None


class ResumeFileResolver:
    def __init__(self, strategies: Sequence[ResolutionStrategy]):
        self._strategies = list(strategies)

    @classmethod
    def default(cls, storage: ObjectStorage, *, list_limit: int = 100) -> "ResumeFileResolver":
        return cls([DirectUrlStrategy(storage), FilenamePatternStrategy(storage, list_limit=list_limit)])

    def resolve(self, record: ResumeRecord) -> ResolutionOutcome:
        attempted: list[str] = []
        errors: list[str] = []
        for strategy in self._strategies:
            outcome = strategy.attempt(record)
            if isinstance(outcome, Resolved):
                logger.info(
                    "resume_file_resolved resume_id=%s strategy=%s method=%s bytes=%s",
                    record.id,
                    strategy.name,
                    outcome.method_used,
                    len(outcome.content),
                )
                return outcome
            for method in outcome.attempted_methods:
                if method not in attempted:
                    attempted.append(method)
            logger.debug(
                "resume_file_strategy_failed resume_id=%s strategy=%s attempted=%s",
                record.id,
                strategy.name,
                ",".join(outcome.attempted_methods) or "none",
            )
            errors.extend(outcome.errors)

        logger.warning(
            "resume_file_unresolved resume_id=%s attempted=%s",
            record.id,
            ",".join(attempted) or "none",
        )
        return Failed(attempted_methods=tuple(attempted), errors=tuple(errors))
