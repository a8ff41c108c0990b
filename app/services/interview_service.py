from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from app.ai.types import AIClient
from app.core.errors import (
    AlreadyExists,
    AnalysisFailed,
    InvalidRequest,
    NotAuthorized,
    RecordNotFound,
    StorageQueryFailed,
)
from app.integrations.types import RecordStore, Row
from app.schemas.interviews import (
    GenerateInterviewRequest,
    GeneratedInterview,
    InterviewAnalysis,
    InterviewAnalysisRecord,
    InterviewQuestion,
    InterviewSession,
    InterviewSessionRequest,
)
from app.services.llm_json import json_completion_required

logger = logging.getLogger(__name__)

INTERVIEW_SESSIONS_TABLE = "interview_sessions"
INTERVIEW_ANALYSES_TABLE = "interview_analyses"
GENERATED_INTERVIEWS_TABLE = "generated_interviews"

MIN_TRANSCRIPT_MESSAGES = 4
MIN_RESPONSE_CHARS = 10
MAX_QUESTIONS = 20
SESSION_STATUSES = ("in_progress", "completed")
MESSAGE_ROLES = ("user", "assistant", "system")
INVALID_TRANSCRIPT_FORMAT = "Invalid transcript format: must be valid JSON array of messages"

_QUESTION_FOCUS = {
    "technical": "Focus on technical finance concepts and problem-solving",
    "behavioral": "Focus on past experiences and soft skills",
}


def validate_transcript(transcript: Any) -> tuple[bool, str | None]:
    if not isinstance(transcript, list):
        return False, "Transcript must be an array"

    if len(transcript) < MIN_TRANSCRIPT_MESSAGES:
        return False, "Transcript too short"

    messages = [item for item in transcript if isinstance(item, dict)]
    user_messages = [item for item in messages if item.get("role") == "user"]
    has_assistant = any(item.get("role") == "assistant" for item in messages)
    if not user_messages or not has_assistant:
        return False, "Transcript missing user responses or interviewer questions"

    short_responses = [
        item for item in user_messages
        if item.get("content") and len(str(item["content"])) < MIN_RESPONSE_CHARS
    ]
    if len(short_responses) > len(user_messages) / 2:
        return False, "Too many short or truncated responses"

    return True, None


def build_interview_prompt(interview: Row, transcript: list[dict[str, Any]]) -> str:
    return f"""Analyze this interview transcript for a {interview.get("role") or "finance"} position at {interview.get("company") or "the company"}.

Interview Type: {interview.get("interview_type") or "general"}
Questions: {json.dumps(interview.get("questions") or [], ensure_ascii=False)}
Transcript: {json.dumps(transcript, ensure_ascii=False)}

You are an expert interviewer and career coach. Analyze the interview responses and provide a comprehensive evaluation.
Focus on both the content of the answers and the communication style.

Important considerations:
1. If responses are truncated or incomplete, focus on evaluating what is available
2. Consider the coherence and flow of the conversation
3. Evaluate both technical knowledge and communication skills
4. Account for interview completeness in your scoring

Return your analysis in this exact JSON format:
{{
  "overall_score": number (0-100),
  "technical_score": number (0-100) or null if not applicable,
  "behavioral_score": number (0-100) or null if not applicable,
  "communication_score": number (0-100),
  "confidence_score": number (0-100),
  "analysis_summary": "detailed text explanation including notes about any limitations in the transcript",
  "strengths": ["strength1", "strength2", ...],
  "areas_for_improvement": ["area1", "area2", ...],
  "detailed_feedback": {{
    "question_responses": [{{"question": "question text", "response_quality": "detailed feedback", "score": number (0-100)}}],
    "communication_analysis": "detailed feedback including notes about response completeness",
    "technical_proficiency": "detailed feedback if applicable",
    "behavioral_insights": "detailed feedback if applicable",
    "transcript_quality_notes": "notes about any transcript limitations or issues"
  }}
}}

Ensure all scores are numbers between 0 and 100. Do not include any explanatory text outside the JSON structure."""


def analyze_transcript(client: AIClient, interview: Row, transcript: Any) -> InterviewAnalysis:
    is_valid, reason = validate_transcript(transcript)
    if not is_valid:
        raise InvalidRequest("Invalid transcript", details=reason)

    payload = json_completion_required(
        client,
        user_prompt=build_interview_prompt(interview, transcript),
        temperature=0.4,
        max_output_tokens=4000,
        tool_slug="interview-analysis",
    )
    try:
        return InterviewAnalysis.model_validate(payload)
    except ValidationError as exc:
        missing = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
        raise AnalysisFailed(
            details=f"Invalid or missing fields in analysis: {', '.join(missing)}",
        ) from exc


def _single(rows: list[Row]) -> Row | None:
    return rows[0] if rows else None


def analyze_interview_session(
    store: RecordStore,
    ai_client: AIClient,
    *,
    session_id: str,
    owner_id: str,
) -> InterviewAnalysisRecord:
    if not session_id:
        raise InvalidRequest("Missing session_id")

    if store.select(INTERVIEW_ANALYSES_TABLE, {"session_id": session_id}, columns="id", limit=1):
        raise AlreadyExists("Analysis already exists for this session")

    session = _single(store.select(INTERVIEW_SESSIONS_TABLE, {"id": session_id}))
    if session is None:
        raise RecordNotFound("Interview session not found")
    if session.get("user_id") and str(session["user_id"]) != owner_id:
        raise NotAuthorized("Not authorized to access this interview session")
    if session.get("status") != "completed":
        raise InvalidRequest("Interview session is not completed")

    transcript = session.get("transcript")
    if not transcript:
        raise InvalidRequest("Invalid or missing transcript data")

    interview: Row = {}
    interview_id = session.get("interview_id")
    if interview_id:
        interview = _single(store.select(GENERATED_INTERVIEWS_TABLE, {"id": interview_id})) or {}

    analysis = analyze_transcript(ai_client, interview, transcript)
    saved = store.insert(
        INTERVIEW_ANALYSES_TABLE,
        {
            "session_id": session_id,
            **analysis.model_dump(mode="json"),
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
    )
    logger.info("interview_analysis_saved session_id=%s score=%s", session_id, analysis.overall_score)

    if interview_id:
        try:
            store.update(GENERATED_INTERVIEWS_TABLE, {"status": "analyzed"}, {"id": interview_id})
        except StorageQueryFailed as exc:
            # The analysis row is already stored.
            logger.warning("interview_status_update_failed interview_id=%s: %s", interview_id, exc.details)

    return InterviewAnalysisRecord.model_validate(
        {
            **analysis.model_dump(mode="json"),
            "id": str(saved["id"]) if saved.get("id") is not None else None,
            "session_id": session_id,
            "created_at": saved.get("created_at"),
        }
    )


def build_question_prompt(request: GenerateInterviewRequest) -> str:
    focus = _QUESTION_FOCUS.get(request.interview_type.strip().lower(), "Mix of technical and behavioral questions")
    description = ""
    if request.job_description and request.job_description.strip():
        description = f"Consider this job description: {request.job_description.strip()}\n\n"
    return (
        f"Generate {request.question_count} interview questions for a {request.role} position "
        f"at {request.company}.\n\n"
        f"{description}"
        'Return a JSON object of the form {"questions": ["Question 1", "Question 2"]}. '
        "Do not include any markdown formatting or additional text.\n\n"
        "Make sure:\n"
        "1. Questions are relevant to finance industry and the role\n"
        "2. Questions are clear and well-formed\n"
        "3. No special characters that might break JSON parsing\n"
        f"4. {focus}"
    )


def _difficulty(index: int, count: int) -> str:
    if index < count / 3:
        return "easy"
    if index < 2 * count / 3:
        return "medium"
    return "hard"


def structure_questions(raw: Any, question_count: int) -> list[dict[str, Any]]:
    """Turn the model's plain question list into tagged question records.

    Difficulty rises by thirds of the list; a question mentioning
    "technical" is categorised as technical, everything else as behavioral.
    """
    if isinstance(raw, dict):
        raw = raw.get("questions")
    if not isinstance(raw, list):
        raise AnalysisFailed("Failed to parse generated questions", details="Response is not an array")
    if len(raw) != question_count:
        raise AnalysisFailed(
            "Failed to parse generated questions",
            details=f"Expected {question_count} questions but got {len(raw)}",
        )

    questions: list[dict[str, Any]] = []
    for index, item in enumerate(raw):
        if not isinstance(item, str) or not item.strip():
            raise AnalysisFailed("Failed to parse generated questions", details=f"Question {index} is not text")
        text = item.strip()
        question = InterviewQuestion(
            question=text,
            difficulty=_difficulty(index, question_count),
            category="technical" if "technical" in text.lower() else "behavioral",
        )
        questions.append(question.model_dump(by_alias=True))
    return questions


def generate_interview(
    store: RecordStore,
    ai_client: AIClient,
    *,
    owner_id: str,
    request: GenerateInterviewRequest,
) -> GeneratedInterview:
    if not (
        request.company.strip()
        and request.role.strip()
        and request.question_count
        and request.interview_type.strip()
    ):
        raise InvalidRequest("Missing required fields")
    if not 1 <= request.question_count <= MAX_QUESTIONS:
        raise InvalidRequest(f"questionCount must be between 1 and {MAX_QUESTIONS}")

    raw = json_completion_required(
        ai_client,
        user_prompt=build_question_prompt(request),
        temperature=0.7,
        max_output_tokens=2000,
        tool_slug="interview-questions",
        expected=(dict, list),
    )
    questions = structure_questions(raw, request.question_count)

    saved = store.insert(
        GENERATED_INTERVIEWS_TABLE,
        {
            "user_id": owner_id,
            "company": request.company.strip(),
            "role": request.role.strip(),
            "job_description": request.job_description,
            "question_count": request.question_count,
            "interview_type": request.interview_type.strip(),
            "questions": questions,
            "status": "generated",
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
    )
    logger.info("interview_generated interview_id=%s questions=%s", saved.get("id"), len(questions))
    return GeneratedInterview.model_validate(saved)


def parse_session_transcript(transcript: Any) -> list[dict[str, Any]]:
    if isinstance(transcript, str):
        try:
            transcript = json.loads(transcript)
        except json.JSONDecodeError as exc:
            raise InvalidRequest(INVALID_TRANSCRIPT_FORMAT) from exc
    if not isinstance(transcript, list):
        raise InvalidRequest(INVALID_TRANSCRIPT_FORMAT)
    for index, message in enumerate(transcript):
        if (
            not isinstance(message, dict)
            or not message.get("content")
            or message.get("role") not in MESSAGE_ROLES
        ):
            raise InvalidRequest(INVALID_TRANSCRIPT_FORMAT, details=f"Invalid message at index {index}")
    return transcript


def save_interview_session(
    store: RecordStore,
    *,
    owner_id: str,
    request: InterviewSessionRequest,
) -> InterviewSession:
    """Create a session for a generated interview, or update one by ``session_id``."""
    missing = [
        name
        for name, value in (
            ("interview_id", request.interview_id),
            ("status", request.status),
            ("transcript", request.transcript),
        )
        if not value
    ]
    if missing:
        raise InvalidRequest(f"Missing required fields: {', '.join(missing)}")

    interview = _single(store.select(GENERATED_INTERVIEWS_TABLE, {"id": request.interview_id}, limit=1))
    if interview is None:
        raise InvalidRequest("Interview not found")
    if interview.get("user_id") and str(interview["user_id"]) != owner_id:
        raise NotAuthorized("Not authorized to access this interview")
    if request.status not in SESSION_STATUSES:
        raise InvalidRequest(f"Invalid status: must be one of {', '.join(SESSION_STATUSES)}")
    transcript = parse_session_transcript(request.transcript)

    now = datetime.now(timezone.utc).isoformat()
    values = {
        "interview_id": request.interview_id,
        "user_id": owner_id,
        "status": request.status,
        "transcript": transcript,
        "completed_at": now if request.status == "completed" else None,
    }

    if request.session_id:
        existing = _single(store.select(INTERVIEW_SESSIONS_TABLE, {"id": request.session_id}))
        if existing is None:
            raise RecordNotFound("Interview session not found")
        if existing.get("user_id") and str(existing["user_id"]) != owner_id:
            raise NotAuthorized("Not authorized to access this interview session")
        rows = store.update(INTERVIEW_SESSIONS_TABLE, values, {"id": request.session_id})
        saved = rows[0] if rows else {**existing, **values}
    else:
        saved = store.insert(INTERVIEW_SESSIONS_TABLE, {**values, "created_at": now})

    logger.info("interview_session_saved session_id=%s status=%s", saved.get("id"), request.status)
    return InterviewSession.model_validate(saved)
