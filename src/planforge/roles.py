"""Conversational roles driving one side of the decision loop."""

from __future__ import annotations

from dataclasses import dataclass, field

from planforge.messages import Message
from planforge.models.base import BaseChatModel


@dataclass(frozen=True)
class ConversationSnapshot:
    """Immutable copy of a role's prompt and history, used for handoff."""

    source: str
    prompt: tuple[Message, ...]
    history: tuple[Message, ...]


@dataclass
class AgentRole:
    """A named conversation: prompt prefix, history and end prompt.

    ``messages()`` is the literal conversation replayed to the model, in the
    order prompt, history, end prompt.
    """

    name: str
    model: BaseChatModel
    prompt: list[Message] = field(default_factory=list)
    history: list[Message] = field(default_factory=list)
    end_prompt: list[Message] = field(default_factory=list)

    def messages(self) -> list[Message]:
        return [*self.prompt, *self.history, *self.end_prompt]

    def clear(self) -> None:
        self.prompt.clear()
        self.history.clear()
        self.end_prompt.clear()

    def push(self, message: Message) -> None:
        self.history.append(message)

    def pop(self) -> Message:
        return self.history.pop()

    def remaining_tokens(self) -> int:
        return self.model.remaining_tokens(self.messages())

    def used_tokens(self) -> int:
        return self.model.count_tokens(self.messages())

    def handoff(self) -> ConversationSnapshot:
        return ConversationSnapshot(
            source=self.name,
            prompt=tuple(self.prompt),
            history=tuple(self.history),
        )

    def adopt(self, snapshot: ConversationSnapshot) -> None:
        """Replace this role's prompt and history with a snapshot."""
        self.prompt = list(snapshot.prompt)
        self.history = list(snapshot.history)
