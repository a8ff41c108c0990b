from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.resumes import CamelModel, Score

SessionStatus = Literal["in_progress", "completed"]


class GenerateInterviewRequest(CamelModel):
    company: str = Field(default="", max_length=200)
    role: str = Field(default="", max_length=200)
    job_description: str | None = Field(default=None, max_length=20000)
    question_count: int | None = None
    interview_type: str = Field(default="", alias="type", max_length=50)


class InterviewQuestion(CamelModel):
    question: str
    expected_answer: str = ""
    difficulty: Literal["easy", "medium", "hard"]
    category: Literal["technical", "behavioral"]
    topic: str = "finance"


class GeneratedInterview(BaseModel):
    id: str | None = None
    user_id: str
    company: str
    role: str
    job_description: str | None = None
    question_count: int
    interview_type: str
    questions: list[dict[str, Any]]
    status: str
    created_at: str | None = None


class InterviewSessionRequest(BaseModel):
    session_id: str | None = Field(default=None, max_length=100)
    interview_id: str = Field(default="", max_length=100)
    status: str = Field(default="", max_length=50)
    transcript: Any = None


class InterviewSession(BaseModel):
    id: str | None = None
    interview_id: str
    user_id: str | None = None
    status: SessionStatus
    transcript: list[dict[str, Any]]
    created_at: str | None = None
    completed_at: str | None = None


class InterviewSessionResponse(BaseModel):
    session: InterviewSession


class InterviewAnalyzeRequest(BaseModel):
    session_id: str = Field(default="", max_length=100)


class InterviewAnalysis(BaseModel):
    overall_score: Score
    technical_score: Score | None = None
    behavioral_score: Score | None = None
    communication_score: Score
    confidence_score: Score
    analysis_summary: str = Field(min_length=1)
    strengths: list[str]
    areas_for_improvement: list[str]
    detailed_feedback: dict[str, Any]


class InterviewAnalysisRecord(InterviewAnalysis):
    id: str | None = None
    session_id: str
    created_at: str | None = None
