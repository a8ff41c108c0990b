from fastapi import APIRouter, Depends, Request

from app.ai.types import AIClient
from app.api.deps import get_analyzer, get_current_user, get_store
from app.core.rate_limit import rate_limit
from app.integrations.types import AuthenticatedUser, RecordStore
from app.schemas.interviews import (
    GenerateInterviewRequest,
    GeneratedInterview,
    InterviewAnalysisRecord,
    InterviewAnalyzeRequest,
    InterviewSessionRequest,
    InterviewSessionResponse,
)
from app.services.interview_service import (
    analyze_interview_session,
    generate_interview,
    save_interview_session,
)

router = APIRouter()


@router.post("/interviews/generate", response_model=GeneratedInterview)
@rate_limit()
def interviews_generate(
    request: Request,
    payload: GenerateInterviewRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    analyzer: AIClient = Depends(get_analyzer),
):
    _ = request
    return generate_interview(store, analyzer, owner_id=user.id, request=payload)


@router.post("/interviews/session", response_model=InterviewSessionResponse)
def interviews_session(
    payload: InterviewSessionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    return InterviewSessionResponse(session=save_interview_session(store, owner_id=user.id, request=payload))


@router.post("/interviews/analyze", response_model=InterviewAnalysisRecord)
@rate_limit()
def interviews_analyze(
    request: Request,
    payload: InterviewAnalyzeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
    analyzer: AIClient = Depends(get_analyzer),
):
    _ = request
    return analyze_interview_session(store, analyzer, session_id=payload.session_id, owner_id=user.id)
