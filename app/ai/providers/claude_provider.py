from __future__ import annotations

import os
from typing import Optional, Sequence

from anthropic import Anthropic

from app.ai.types import ChatMessage


class ClaudeProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 2,
    ):
        self.model = model
        key = (api_key or os.getenv("ANTHROPIC_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("ANTHROPIC_API_KEY is missing")

        self._client = Anthropic(api_key=key, timeout=timeout_s, max_retries=max_retries)

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str:
        # Anthropic takes the system prompt as a separate argument.
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        payload = [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]

        create_kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": payload,
        }
        if system:
            create_kwargs["system"] = system

        response = self._client.messages.create(**create_kwargs)
        return "".join(
            getattr(block, "text", "") for block in response.content if getattr(block, "type", "") == "text"
        )
