"""Token estimation and history trimming for conversation buffers."""

from __future__ import annotations

from typing import Callable, Sequence

from planforge.messages import Message

MESSAGE_OVERHEAD_TOKENS = 4


def message_tokens(message: Message, token_char_ratio: int) -> int:
    length = len(message.content)
    if length == 0:
        return MESSAGE_OVERHEAD_TOKENS
    return MESSAGE_OVERHEAD_TOKENS + max(1, length // max(1, token_char_ratio))


def estimate_tokens(messages: Sequence[Message], token_char_ratio: int = 4) -> int:
    """Approximate the token count of a message list."""
    return sum(message_tokens(message, token_char_ratio) for message in messages)


def drop_oldest(
    history: list[Message],
    fits: Callable[[list[Message]], bool],
) -> int:
    """Remove messages from the front of ``history`` until ``fits`` holds.

    Mutates ``history`` in place and returns the number of dropped messages.
    Stops when the history is empty even if the budget is still exceeded.
    """
    dropped = 0
    while history and not fits(history):
        history.pop(0)
        dropped += 1
    return dropped
