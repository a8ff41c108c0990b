from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from app.schemas.resumes import AnalysisContext, CamelModel

JobStatus = Literal["pending", "processing", "completed", "failed"]


class CreateAnalysisJobRequest(AnalysisContext):
    resume_id: str = Field(default="", max_length=100)


class CreateAnalysisJobResponse(CamelModel):
    job_id: str
    status: JobStatus = "pending"
    message: str = "Analysis job created successfully"


class AnalysisJobStatusResponse(CamelModel):
    job_id: str
    status: JobStatus
    resume_id: str
    created_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None
    result: dict[str, Any] | None = None
    processing_time_ms: int | None = None
    processing_time_sec: int | None = None
    error: str | None = None


class ProcessJobsResponse(CamelModel):
    processed: int
    completed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
