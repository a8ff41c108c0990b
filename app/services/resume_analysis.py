from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from app.ai.types import AIClient
from app.core.errors import AnalysisFailed, ExtractionFailed
from app.integrations.types import RecordStore, Row
from app.schemas.resumes import AnalysisContext, ResumeAnalysisResult
from app.services.llm_json import json_completion_required

logger = logging.getLogger(__name__)

RESUME_ANALYSES_TABLE = "resume_analyses"

_RESPONSE_SHAPE = """{
  "overallScore": number between 0-100,
  "summary": "Brief overview of the resume's strengths and weaknesses",
  "strengths": ["strength1", "strength2", ...],
  "areasForImprovement": ["area1", "area2", ...],
  "contentQuality": {
    "score": number between 0-100,
    "feedback": "Detailed feedback on content quality",
    "suggestions": ["suggestion1", "suggestion2", ...]
  },
  "formatting": {
    "score": number between 0-100,
    "feedback": "Detailed feedback on formatting and structure",
    "suggestions": ["suggestion1", "suggestion2", ...]
  },
  "industryRelevance": {
    "score": number between 0-100,
    "feedback": "Detailed feedback on industry relevance",
    "suggestions": ["suggestion1", "suggestion2", ...]
  },
  "impactStatements": {
    "score": number between 0-100,
    "feedback": "Detailed feedback on impact statements and quantifiable achievements",
    "suggestions": ["suggestion1", "suggestion2", ...]
  },
  "suggestedEdits": [
    {
      "original": "Original text from resume",
      "improved": "Improved version of the text",
      "explanation": "Why this change improves the resume"
    }
  ]
}"""


def build_resume_prompt(resume_text: str, context: AnalysisContext | None = None) -> str:
    context = context or AnalysisContext()
    job_role = context.job_role or "finance professional"
    industry = context.industry or "finance"
    experience_level = context.experience_level or "not specified"
    return (
        f"I need you to analyze the following resume for a {job_role} position in the {industry} "
        f"industry with {experience_level} experience level.\n\n"
        "Please provide a comprehensive analysis in JSON format with the following structure:\n"
        f"{_RESPONSE_SHAPE}\n\n"
        "Focus on finance-specific improvements like quantifying achievements, highlighting relevant "
        "skills, and using industry terminology appropriately. Respond with the JSON object only.\n\n"
        f"RESUME TEXT:\n{resume_text}\n"
    )


def analyze_resume(
    client: AIClient,
    resume_text: str,
    context: AnalysisContext | None = None,
) -> ResumeAnalysisResult:
    if not resume_text.strip():
        raise ExtractionFailed(details="The resume contains no extractable text; it may be an image-based PDF")

    payload = json_completion_required(
        client,
        user_prompt=build_resume_prompt(resume_text, context),
        temperature=0.7,
        max_output_tokens=4000,
        tool_slug="resume-analysis",
    )
    try:
        return ResumeAnalysisResult.model_validate(payload)
    except ValidationError as exc:
        logger.warning("resume_analysis_invalid_format errors=%s", exc.error_count())
        raise AnalysisFailed(details="Invalid analysis result format") from exc


def save_resume_analysis(
    store: RecordStore,
    resume_id: str,
    user_id: str,
    analysis: ResumeAnalysisResult,
) -> Row:
    data = analysis.model_dump(mode="json")
    return store.insert(
        RESUME_ANALYSES_TABLE,
        {
            "resume_id": resume_id,
            "user_id": user_id,
            "overall_score": data["overall_score"],
            "summary": data["summary"],
            "strengths": data["strengths"],
            "areas_for_improvement": data["areas_for_improvement"],
            "content_quality": data["content_quality"],
            "formatting": data["formatting"],
            "industry_relevance": data["industry_relevance"],
            "impact_statements": data["impact_statements"],
            "suggested_edits": data["suggested_edits"],
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
    )
