"""Base model interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from planforge.messages import Message
from planforge.util.context_trim import estimate_tokens


class BaseChatModel(ABC):
    """Abstract chat model interface.

    Subclasses implement ``chat``; token accounting is an estimate against
    ``context_window`` shared by every backend.
    """

    context_window: int = 4096
    token_char_ratio: int = 4

    @abstractmethod
    def chat(
        self,
        messages: Sequence[Message],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send chat request and return the reply text."""
        raise NotImplementedError

    def count_tokens(self, messages: Sequence[Message]) -> int:
        return estimate_tokens(messages, self.token_char_ratio)

    def remaining_tokens(self, messages: Sequence[Message]) -> int:
        return self.context_window - self.count_tokens(messages)
