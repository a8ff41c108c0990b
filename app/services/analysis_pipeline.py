from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from app.ai.types import AIClient
from app.analytics.db import log_resolution_run
from app.core.config import settings
from app.core.errors import FileUnresolvable, StorageQueryFailed
from app.integrations.types import ObjectStorage, RecordStore
from app.parsing.models import ParsedDoc
from app.parsing.parse import parse_document
from app.resumes.locator import ResumeLocator
from app.resumes.models import Resolved, ResumeRecord
from app.resumes.resolver import ResumeFileResolver
from app.schemas.resumes import AnalysisContext, ResumeAnalysisResult
from app.services.resume_analysis import analyze_resume, save_resume_analysis

logger = logging.getLogger(__name__)

DEFAULT_FILE_TYPE = "application/pdf"


@dataclass(frozen=True)
class ResumeFile:
    record: ResumeRecord
    content: bytes
    method_used: str
    substituted: bool

    @property
    def file_type(self) -> str:
        return self.record.file_type or DEFAULT_FILE_TYPE


def _log_resolution(
    *,
    resume_id: str,
    substituted: bool,
    status: str,
    method_used: str | None,
    attempted_methods: list[str],
    latency_ms: int,
) -> None:
    try:
        log_resolution_run(
            resume_id=resume_id,
            substituted=substituted,
            status=status,
            method_used=method_used,
            attempted_methods=attempted_methods,
            latency_ms=latency_ms,
        )
    except Exception:  # pragma: no cover - analytics must not break requests
        logger.debug("resolution_run_logging_failed", exc_info=True)


def fetch_resume_file(
    store: RecordStore,
    storage: ObjectStorage,
    *,
    resume_id: str,
    owner_id: str,
    threshold: float | None = None,
    list_limit: int | None = None,
) -> ResumeFile:
    """Locate the owner's resume record and download its bytes."""
    locator = ResumeLocator(
        store,
        threshold=settings.resume_id_match_threshold if threshold is None else threshold,
    )
    record = locator.locate(resume_id, owner_id)
    substituted = record.id != resume_id

    started = time.perf_counter()
    resolver = ResumeFileResolver.default(
        storage,
        list_limit=settings.storage_list_limit if list_limit is None else list_limit,
    )
    outcome = resolver.resolve(record)
    latency_ms = int((time.perf_counter() - started) * 1000)

    if not isinstance(outcome, Resolved):
        _log_resolution(
            resume_id=record.id,
            substituted=substituted,
            status="failed",
            method_used=None,
            attempted_methods=list(outcome.attempted_methods),
            latency_ms=latency_ms,
        )
        raise FileUnresolvable(list(outcome.attempted_methods), list(outcome.errors))

    _log_resolution(
        resume_id=record.id,
        substituted=substituted,
        status="resolved",
        method_used=outcome.method_used,
        attempted_methods=[],
        latency_ms=latency_ms,
    )
    return ResumeFile(record=record, content=outcome.content, method_used=outcome.method_used, substituted=substituted)


def parse_resume(
    store: RecordStore,
    storage: ObjectStorage,
    *,
    resume_id: str,
    owner_id: str,
) -> tuple[ResumeFile, ParsedDoc]:
    resume_file = fetch_resume_file(store, storage, resume_id=resume_id, owner_id=owner_id)
    parsed = parse_document(resume_file.content, resume_file.file_type)
    logger.info(
        "resume_text_extracted resume_id=%s source=%s chars=%s",
        resume_file.record.id,
        parsed.source_type,
        len(parsed.text),
    )
    return resume_file, parsed


def run_resume_analysis(
    store: RecordStore,
    storage: ObjectStorage,
    ai_client: AIClient,
    *,
    resume_id: str,
    owner_id: str,
    context: AnalysisContext | None = None,
) -> ResumeAnalysisResult:
    resume_file, parsed = parse_resume(store, storage, resume_id=resume_id, owner_id=owner_id)
    result = analyze_resume(ai_client, parsed.text, context)

    try:
        save_resume_analysis(store, resume_file.record.id, owner_id, result)
    except StorageQueryFailed as exc:
        # The caller still gets the computed analysis.
        logger.warning("resume_analysis_save_failed resume_id=%s: %s", resume_file.record.id, exc.details)
    return result
