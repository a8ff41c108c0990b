from __future__ import annotations

import json
import logging
import re
import time
import uuid
from typing import Any

from app.ai.types import AIClient, ChatMessage
from app.analytics.db import log_ai_analysis_run
from app.core.errors import AnalysisFailed

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", flags=re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", (text or "").strip()).strip()


def _log_ai_run(
    *,
    run_id: str,
    tool_slug: str,
    model: str,
    schema_valid: bool,
    status: str,
    latency_ms: int | None,
    error_code: str | None = None,
) -> None:
    try:
        log_ai_analysis_run(
            run_id=run_id,
            tool_slug=tool_slug or "unknown",
            model=model,
            schema_valid=schema_valid,
            status=status,
            error_code=error_code,
            latency_ms=latency_ms,
        )
    except Exception:  # pragma: no cover - analytics must not break AI responses
        logger.debug("ai_run_logging_failed", exc_info=True)


def json_completion_required(
    client: AIClient,
    *,
    user_prompt: str,
    system_prompt: str | None = None,
    temperature: float = 0.7,
    max_output_tokens: int = 4000,
    tool_slug: str = "unknown",
    expected: tuple[type, ...] = (dict,),
) -> Any:
    """Run one completion and return its body parsed as JSON.

    Raises ``AnalysisFailed`` when the call errors, returns nothing, or the
    parsed value is not one of ``expected`` (a JSON object by default).
    Markdown code fences around the JSON are tolerated.
    """
    run_id = uuid.uuid4().hex
    model = getattr(client, "model", "unknown")
    started = time.perf_counter()

    def elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    messages: list[ChatMessage] = []
    if system_prompt:
        messages.append(ChatMessage(role="system", content=system_prompt))
    messages.append(ChatMessage(role="user", content=user_prompt))

    try:
        content = client.complete(messages, max_tokens=max_output_tokens, temperature=temperature)
    except Exception as exc:
        logger.warning("llm_json_failed model=%s tool=%s prompt_len=%s: %s", model, tool_slug, len(user_prompt), exc)
        _log_ai_run(
            run_id=run_id,
            tool_slug=tool_slug,
            model=model,
            schema_valid=False,
            status="error",
            error_code="llm_exception",
            latency_ms=elapsed(),
        )
        raise AnalysisFailed(details=str(exc)) from exc

    text = strip_code_fences(content)
    if not text:
        _log_ai_run(
            run_id=run_id,
            tool_slug=tool_slug,
            model=model,
            schema_valid=False,
            status="empty",
            error_code="empty_response",
            latency_ms=elapsed(),
        )
        raise AnalysisFailed(details="The model returned an empty response")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("llm_json_unparseable model=%s tool=%s preview=%r", model, tool_slug, text[:200])
        _log_ai_run(
            run_id=run_id,
            tool_slug=tool_slug,
            model=model,
            schema_valid=False,
            status="invalid_schema",
            error_code="invalid_json",
            latency_ms=elapsed(),
        )
        raise AnalysisFailed(details="Failed to parse analysis results") from exc

    schema_valid = isinstance(parsed, expected)
    _log_ai_run(
        run_id=run_id,
        tool_slug=tool_slug,
        model=model,
        schema_valid=schema_valid,
        status="success" if schema_valid else "invalid_schema",
        error_code=None if schema_valid else "invalid_schema",
        latency_ms=elapsed(),
    )
    if not schema_valid:
        raise AnalysisFailed(details="Analysis result has an unexpected JSON shape")
    return parsed
