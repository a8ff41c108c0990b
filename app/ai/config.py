import os
from dataclasses import dataclass

_DEFAULT_MODELS = {
    "claude": "claude-3-5-sonnet-latest",
    "openai": "gpt-4o-mini",
}


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    timeout_s: float
    max_retries: int


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "claude").strip().lower()
    model = (os.getenv("AI_MODEL") or _DEFAULT_MODELS.get(provider, "")).strip()
    return AIConfig(
        provider=provider,
        model=model,
        timeout_s=float(os.getenv("AI_TIMEOUT_S", "60")),
        max_retries=int(os.getenv("AI_MAX_RETRIES", "2")),
    )
