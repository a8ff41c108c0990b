from fastapi import APIRouter, Depends, Request

from app.ai.types import AIClient
from app.api.deps import get_analyzer, get_current_user, get_storage, get_store
from app.core.errors import InvalidRequest
from app.core.rate_limit import rate_limit
from app.integrations.types import AuthenticatedUser, ObjectStorage, RecordStore
from app.schemas.resumes import (
    AnalysisContext,
    AnalyzeResumeRequest,
    ParseResumeRequest,
    ParseResumeResponse,
    ResumeAnalysisResult,
)
from app.services.analysis_pipeline import parse_resume, run_resume_analysis

router = APIRouter()


@router.post("/resumes/analyze", response_model=ResumeAnalysisResult)
@rate_limit()
def analyze_resume(
    request: Request,
    payload: AnalyzeResumeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    analyzer: AIClient = Depends(get_analyzer),
):
    _ = request
    if not payload.resume_id:
        raise InvalidRequest("Resume ID is required")
    return run_resume_analysis(
        store,
        storage,
        analyzer,
        resume_id=payload.resume_id,
        owner_id=user.id,
        context=AnalysisContext(
            job_role=payload.job_role,
            industry=payload.industry,
            experience_level=payload.experience_level,
        ),
    )


@router.post("/resumes/parse", response_model=ParseResumeResponse)
@rate_limit()
def parse_resume_text(
    request: Request,
    payload: ParseResumeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
):
    _ = request
    if not payload.resume_id:
        raise InvalidRequest("Resume ID is required")
    resume_file, parsed = parse_resume(store, storage, resume_id=payload.resume_id, owner_id=user.id)
    return ParseResumeResponse(
        resume_id=resume_file.record.id,
        file_name=resume_file.record.file_name,
        file_type=resume_file.file_type,
        text_length=len(parsed.text),
        text=parsed.text,
        method=resume_file.method_used,
        warnings=parsed.parsing_warnings,
    )
