from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _round_score(value: Any) -> Any:
    if isinstance(value, float):
        return int(round(value))
    return value


Score = Annotated[int, BeforeValidator(_round_score), Field(ge=0, le=100)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisContext(CamelModel):
    job_role: str | None = Field(default=None, max_length=200)
    industry: str | None = Field(default=None, max_length=200)
    experience_level: str | None = Field(default=None, max_length=100)


class AnalyzeResumeRequest(AnalysisContext):
    resume_id: str = Field(default="", max_length=100)


class ParseResumeRequest(CamelModel):
    resume_id: str = Field(default="", max_length=100)


class SectionFeedback(CamelModel):
    score: Score
    feedback: str = ""
    suggestions: list[str] = Field(default_factory=list)


class SuggestedEdit(CamelModel):
    original: str = ""
    improved: str = ""
    explanation: str = ""


class ResumeAnalysisResult(CamelModel):
    overall_score: Score
    summary: str = Field(min_length=1)
    strengths: list[str] = Field(default_factory=list)
    areas_for_improvement: list[str] = Field(default_factory=list)
    content_quality: SectionFeedback | None = None
    formatting: SectionFeedback | None = None
    industry_relevance: SectionFeedback | None = None
    impact_statements: SectionFeedback | None = None
    suggested_edits: list[SuggestedEdit] = Field(default_factory=list)


class ParseResumeResponse(CamelModel):
    success: bool = True
    resume_id: str
    file_name: str | None = None
    file_type: str | None = None
    text_length: int
    text: str
    method: str
    warnings: list[str] = Field(default_factory=list)
