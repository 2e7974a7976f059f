"""Mock chat model for offline testing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from planforge.messages import Message
from planforge.models.base import BaseChatModel


@dataclass(frozen=True)
class RecordedCall:
    messages: tuple[Message, ...]
    max_tokens: int | None
    temperature: float | None


class MockChatModel(BaseChatModel):
    """Deterministic mock model used when no API key is available."""

    def __init__(
        self,
        scripted: list[str] | None = None,
        context_window: int = 4096,
        token_char_ratio: int = 4,
    ) -> None:
        self._scripted = list(scripted or [])
        self.context_window = context_window
        self.token_char_ratio = token_char_ratio
        self.calls: list[RecordedCall] = []

    def chat(
        self,
        messages: Sequence[Message],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        self.calls.append(
            RecordedCall(
                messages=tuple(messages),
                max_tokens=max_tokens,
                temperature=temperature,
            )
        )
        if self._scripted:
            return self._scripted.pop(0)
        last = messages[-1].content if messages else ""
        return f"Mock response to: {last}"

    def push(self, *replies: str) -> None:
        self._scripted.extend(replies)
