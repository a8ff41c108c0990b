from app.ai.config import load_ai_config
from app.ai.types import AIClient

from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.providers.claude_provider import ClaudeProvider


def get_ai_client() -> AIClient:
    cfg = load_ai_config()

    if cfg.provider == "claude":
        return ClaudeProvider(model=cfg.model, timeout_s=cfg.timeout_s, max_retries=cfg.max_retries)

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model, timeout_s=cfg.timeout_s, max_retries=cfg.max_retries)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
