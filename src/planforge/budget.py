"""Context-window budget: summarize history into memory, then truncate."""

from __future__ import annotations

from dataclasses import dataclass

from planforge.errors import BudgetFlushFailure
from planforge.memory import MemoryKind, MemoryStore
from planforge.messages import Message
from planforge.roles import AgentRole
from planforge.schemas import MemorySummary
from planforge.structured import request_structured
from planforge.updates import SavedMemories, UpdateSink
from planforge.util.context_trim import drop_oldest
from planforge.util.logging import get_logger

logger = get_logger(__name__)

SUMMARY_PROMPT = """
Please summarize all important actions you took out.
Please also summarize all observations of information you have collected.

Be concise.

Respond in this JSON format:
```json
{
    "actions": [
        "what tool you used and why"
    ],
    "observations": [
        "what you learned"
    ]
}
```
""".strip()


@dataclass(frozen=True)
class BudgetPolicy:
    low_water: int = 1200
    high_water: int = 2000
    summary_retries: int = 2
    summary_max_tokens: int = 700
    summary_temperature: float = 0.5


class ContextBudget:
    """Keeps a role's conversation inside its model's context window."""

    def __init__(
        self,
        memory: MemoryStore,
        on_update: UpdateSink,
        policy: BudgetPolicy | None = None,
    ) -> None:
        self.memory = memory
        self.on_update = on_update
        self.policy = policy or BudgetPolicy()

    def remaining(self, role: AgentRole) -> int:
        return role.remaining_tokens()

    def summarize_and_flush(self, role: AgentRole) -> MemorySummary:
        """Ask the role to summarize itself and persist the summary.

        Any failure of the summary call or of the memory store becomes
        ``BudgetFlushFailure``; errors from the update sink propagate unchanged.
        """
        role.push(Message.user(SUMMARY_PROMPT))
        try:
            result = request_structured(
                role,
                MemorySummary,
                self.policy.summary_retries,
                max_tokens=self.policy.summary_max_tokens,
                temperature=self.policy.summary_temperature,
            )
        except Exception as exc:  # noqa: BLE001
            raise BudgetFlushFailure(f"{role.name} could not summarize: {exc}") from exc
        finally:
            role.pop()
        memories = result.data
        self.on_update(SavedMemories(role=role.name, memories=memories))
        try:
            for text in memories.actions:
                self.memory.store(role, text, MemoryKind.ACTION)
            for text in memories.observations:
                self.memory.store(role, text, MemoryKind.OBSERVATION)
        except Exception as exc:  # noqa: BLE001
            raise BudgetFlushFailure(f"{role.name} could not store memories: {exc}") from exc
        logger.info(
            "%s saved %s action(s) and %s observation(s).",
            role.name,
            len(memories.actions),
            len(memories.observations),
        )
        return memories

    def truncate(self, role: AgentRole, keep_tokens: int) -> int:
        """Drop the oldest history until the role's messages fit ``keep_tokens``."""

        def fits(history: list[Message]) -> bool:
            messages = [*role.prompt, *history, *role.end_prompt]
            return role.model.count_tokens(messages) <= keep_tokens

        dropped = drop_oldest(role.history, fits)
        if dropped:
            logger.info("%s dropped %s message(s) from history.", role.name, dropped)
        if role.used_tokens() > keep_tokens:
            logger.warning(
                "%s prompt alone uses %s tokens, above the %s token target.",
                role.name,
                role.used_tokens(),
                keep_tokens,
            )
        return dropped

    def flush(self, role: AgentRole) -> bool:
        """Summarize into memory, recovering locally when that fails."""
        try:
            self.summarize_and_flush(role)
        except BudgetFlushFailure as exc:
            logger.warning("Memory flush failed, falling back to truncation: %s", exc)
            return False
        return True

    def enforce(self, role: AgentRole) -> bool:
        """Run one flush cycle when the role is below the low-water mark."""
        remaining = self.remaining(role)
        if remaining >= self.policy.low_water:
            return False
        logger.info("%s has %s tokens left; flushing.", role.name, remaining)
        try:
            self.flush(role)
        finally:
            self.truncate(role, self.policy.high_water)
        return True
