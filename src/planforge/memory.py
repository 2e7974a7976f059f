"""Long-term memory: the store interface and an in-process implementation."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from planforge.roles import AgentRole

_WORD_RE = re.compile(r"[a-z0-9]+")


class MemoryKind(str, Enum):
    ACTION = "action"
    OBSERVATION = "observation"


@dataclass(frozen=True)
class Weights:
    recall: float = 1.0
    recency: float = 1.0
    relevance: float = 1.0


@dataclass
class MemoryRecord:
    content: str
    kind: MemoryKind
    created: int
    recalls: int = 0


class MemoryStoreError(RuntimeError):
    """Raised when a memory cannot be persisted."""


class MemoryStore(ABC):
    """Persists memories per role and recalls them by weighted score."""

    @abstractmethod
    def store(self, role: AgentRole, text: str, kind: MemoryKind) -> None:
        raise NotImplementedError

    @abstractmethod
    def recall(
        self,
        role: AgentRole,
        query: str,
        limit: int,
        weights: Weights,
        candidates: int,
    ) -> list[MemoryRecord]:
        raise NotImplementedError


def _words(text: str) -> set[str]:
    return set(_WORD_RE.findall(text.lower()))


@dataclass
class InMemoryStore(MemoryStore):
    """Keeps records in a dict keyed by role name.

    Recall looks at the ``candidates`` most recent records and ranks them by
    recency, how often they were recalled before, and word overlap with the
    query.
    """

    records: dict[str, list[MemoryRecord]] = field(default_factory=dict)
    _counter: int = 0

    def store(self, role: AgentRole, text: str, kind: MemoryKind) -> None:
        content = text.strip()
        if not content:
            raise MemoryStoreError("Refusing to store an empty memory")
        self._counter += 1
        self.records.setdefault(role.name, []).append(
            MemoryRecord(content=content, kind=kind, created=self._counter)
        )

    def recall(
        self,
        role: AgentRole,
        query: str,
        limit: int,
        weights: Weights,
        candidates: int,
    ) -> list[MemoryRecord]:
        pool = self.records.get(role.name, [])[-max(0, candidates):] if candidates else []
        if not pool or limit <= 0:
            return []
        oldest = pool[0].created
        span = max(1, pool[-1].created - oldest)
        most_recalled = max(record.recalls for record in pool) or 1
        query_words = _words(query)

        def score(record: MemoryRecord) -> float:
            recency = (record.created - oldest) / span
            recall = record.recalls / most_recalled
            relevance = 0.0
            if query_words:
                relevance = len(query_words & _words(record.content)) / len(query_words)
            return (
                weights.recency * recency
                + weights.recall * recall
                + weights.relevance * relevance
            )

        ranked = sorted(pool, key=lambda record: (-score(record), -record.created))
        selected = ranked[:limit]
        for record in selected:
            record.recalls += 1
        return selected
