from fastapi import APIRouter, Depends, Query

from app.ai.types import AIClient
from app.api.deps import get_analyzer, get_current_user, get_storage, get_store, require_api_key
from app.integrations.types import AuthenticatedUser, ObjectStorage, RecordStore
from app.schemas.analysis_jobs import (
    AnalysisJobStatusResponse,
    CreateAnalysisJobRequest,
    CreateAnalysisJobResponse,
    ProcessJobsResponse,
)
from app.services.analysis_jobs import create_analysis_job, get_analysis_status, process_pending_jobs

router = APIRouter()


@router.post("/analysis-jobs", response_model=CreateAnalysisJobResponse)
def create_job(
    payload: CreateAnalysisJobRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    return create_analysis_job(store, owner_id=user.id, request=payload)


# Declared before the {job_id} route so "process" is never taken for an id.
@router.post("/analysis-jobs/process", response_model=ProcessJobsResponse)
def process_jobs(
    limit: int | None = Query(default=None, ge=1, le=50),
    _: None = Depends(require_api_key),
    store: RecordStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    analyzer: AIClient = Depends(get_analyzer),
):
    return process_pending_jobs(store, storage, analyzer, limit=limit)


@router.get("/analysis-jobs/{job_id}", response_model=AnalysisJobStatusResponse, response_model_exclude_none=True)
def job_status(
    job_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    return get_analysis_status(store, owner_id=user.id, job_id=job_id)
