from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from app.ai.types import AIClient
from app.core.config import settings
from app.core.errors import CareerCoachError, InvalidRequest, JobNotFound, StorageQueryFailed
from app.integrations.types import ObjectStorage, RecordStore, Row
from app.resumes.locator import ResumeLocator
from app.schemas.analysis_jobs import (
    AnalysisJobStatusResponse,
    CreateAnalysisJobRequest,
    CreateAnalysisJobResponse,
    ProcessJobsResponse,
)
from app.schemas.resumes import AnalysisContext
from app.services.analysis_pipeline import run_resume_analysis

logger = logging.getLogger(__name__)

ANALYSIS_JOBS_TABLE = "analysis_jobs"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def create_analysis_job(
    store: RecordStore,
    *,
    owner_id: str,
    request: CreateAnalysisJobRequest,
) -> CreateAnalysisJobResponse:
    if not request.resume_id:
        raise InvalidRequest("Resume ID is required")

    record = ResumeLocator(store, threshold=settings.resume_id_match_threshold).locate(request.resume_id, owner_id)
    now = _utc_now().isoformat()
    job_id = str(uuid.uuid4())
    store.insert(
        ANALYSIS_JOBS_TABLE,
        {
            "id": job_id,
            "resume_id": record.id,
            "user_id": owner_id,
            "status": "pending",
            "job_role": request.job_role,
            "industry": request.industry,
            "experience_level": request.experience_level,
            "created_at": now,
            "updated_at": now,
        },
    )
    logger.info("analysis_job_created job_id=%s resume_id=%s", job_id, record.id)
    return CreateAnalysisJobResponse(job_id=job_id)


def get_analysis_status(store: RecordStore, *, owner_id: str, job_id: str) -> AnalysisJobStatusResponse:
    rows = store.select(ANALYSIS_JOBS_TABLE, {"id": job_id, "user_id": owner_id})
    if not rows:
        raise JobNotFound(details="Job not found or not owned by user")
    job = rows[0]
    status = job.get("status") or "pending"

    response = AnalysisJobStatusResponse(
        job_id=str(job["id"]),
        status=status,
        resume_id=str(job.get("resume_id") or ""),
        created_at=job.get("created_at"),
        updated_at=job.get("updated_at"),
    )

    if status == "completed" and job.get("completed_at"):
        response.completed_at = job["completed_at"]
        response.result = job.get("result")

    if status == "processing":
        started = _parse_timestamp(job.get("updated_at"))
        if started is not None:
            elapsed_ms = max(0, int((_utc_now() - started).total_seconds() * 1000))
            response.processing_time_ms = elapsed_ms
            response.processing_time_sec = round(elapsed_ms / 1000)

    if status == "failed":
        response.error = job.get("error_message") or "Unknown error occurred during analysis"

    return response


def _mark(store: RecordStore, job_id: str, values: dict[str, Any]) -> None:
    store.update(ANALYSIS_JOBS_TABLE, {**values, "updated_at": _utc_now().isoformat()}, {"id": job_id})


def _failure_message(exc: CareerCoachError) -> str:
    if isinstance(exc.details, str) and exc.details:
        return f"{exc.message}: {exc.details}"
    return exc.message


def _run_job(store: RecordStore, storage: ObjectStorage, ai_client: AIClient, job: Row) -> dict[str, Any]:
    """Analyse one job's resume and return the column values describing its outcome."""
    job_id = str(job["id"])
    context = AnalysisContext(
        job_role=job.get("job_role"),
        industry=job.get("industry"),
        experience_level=job.get("experience_level"),
    )
    try:
        _mark(store, job_id, {"status": "processing"})
        result = run_resume_analysis(
            store,
            storage,
            ai_client,
            resume_id=str(job.get("resume_id") or ""),
            owner_id=str(job.get("user_id") or ""),
            context=context,
        )
    except CareerCoachError as exc:
        logger.warning("analysis_job_failed job_id=%s code=%s", job_id, exc.code)
        return {"status": "failed", "error_message": _failure_message(exc)}
    except Exception as exc:  # pragma: no cover - one broken job must not stop the batch
        logger.exception("analysis_job_crashed job_id=%s", job_id)
        return {"status": "failed", "error_message": str(exc) or exc.__class__.__name__}
    return {
        "status": "completed",
        "result": result.model_dump(mode="json", by_alias=True),
        "completed_at": _utc_now().isoformat(),
    }


def _record_outcome(store: RecordStore, job_id: str, outcome: dict[str, Any]) -> bool:
    """Write the outcome to the job row. Returns False if the row could not be updated."""
    try:
        _mark(store, job_id, outcome)
        return True
    except StorageQueryFailed as exc:
        logger.error(
            "analysis_job_outcome_not_recorded job_id=%s status=%s: %s",
            job_id,
            outcome["status"],
            exc.details,
        )
    if outcome["status"] == "failed":
        return False
    # A smaller write may still succeed; otherwise the row stays in processing.
    try:
        _mark(store, job_id, {"status": "failed", "error_message": "Failed to save analysis result"})
    except StorageQueryFailed as exc:
        logger.error("analysis_job_fallback_not_recorded job_id=%s: %s", job_id, exc.details)
    return False


def process_pending_jobs(
    store: RecordStore,
    storage: ObjectStorage,
    ai_client: AIClient,
    *,
    limit: int | None = None,
) -> ProcessJobsResponse:
    """Run queued analysis jobs oldest first, recording each outcome on its row.

    A job whose analysis or bookkeeping fails is reported in ``failed`` and the
    batch moves on to the next job.
    """
    batch = settings.job_batch_size if limit is None else limit
    jobs: list[Row] = store.select(
        ANALYSIS_JOBS_TABLE,
        {"status": "pending"},
        order_by="created_at",
        limit=batch,
    )
    summary = ProcessJobsResponse(processed=0)

    for job in jobs:
        job_id = str(job["id"])
        outcome = _run_job(store, storage, ai_client, job)
        recorded = _record_outcome(store, job_id, outcome)
        if recorded and outcome["status"] == "completed":
            summary.completed.append(job_id)
        else:
            summary.failed.append(job_id)
        summary.processed += 1

    return summary
