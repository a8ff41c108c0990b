from dataclasses import dataclass
from typing import Literal, Protocol, Sequence


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


class AIClient(Protocol):
    model: str

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> str: ...
