from __future__ import annotations

import os
from typing import Optional, Sequence

from openai import OpenAI

from app.ai.types import ChatMessage


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 2,
    ):
        self.model = model
        self._response_format = (os.getenv("OPENAI_RESPONSE_FORMAT") or "json").strip().lower()
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=max_retries,
        )

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str:
        payload = [{"role": m.role, "content": m.content} for m in messages]

        create_kwargs = {
            "model": self.model,
            "messages": payload,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self._response_format == "json":
            create_kwargs["response_format"] = {"type": "json_object"}

        response = self._client.chat.completions.create(**create_kwargs)
        content = response.choices[0].message.content if response.choices else ""
        return content or ""
