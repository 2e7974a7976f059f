"""Shared execution context and exclusive run checkout."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator
from uuid import uuid4

from planforge.memory import InMemoryStore, MemoryStore
from planforge.models.base import BaseChatModel
from planforge.roles import AgentRole
from planforge.tools.registry import ToolRegistry
from planforge.util.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Agents:
    planner: AgentRole
    executor: AgentRole
    employee: AgentRole


@dataclass
class ExecutionContext:
    """Tool registry, asset map and agent roles shared by successive runs."""

    registry: ToolRegistry
    agents: Agents
    memory: MemoryStore = field(default_factory=InMemoryStore)
    assets: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        model: BaseChatModel,
        registry: ToolRegistry,
        memory: MemoryStore | None = None,
        planner_model: BaseChatModel | None = None,
    ) -> "ExecutionContext":
        agents = Agents(
            planner=AgentRole(name="planner", model=planner_model or model),
            executor=AgentRole(name="executor", model=model),
            employee=AgentRole(name="employee", model=model),
        )
        return cls(registry=registry, agents=agents, memory=memory or InMemoryStore())


class RunToken:
    """Exclusive handle on an execution context for the duration of one run."""

    def __init__(self, context: ExecutionContext, run_id: str) -> None:
        self._context: ExecutionContext | None = context
        self.run_id = run_id

    @property
    def context(self) -> ExecutionContext:
        if self._context is None:
            raise RuntimeError(f"Run token {self.run_id} has been released")
        return self._context

    @property
    def active(self) -> bool:
        return self._context is not None

    def release(self) -> None:
        self._context = None


class ContextHolder:
    """Owns an execution context and lends it to one run at a time."""

    def __init__(self, context: ExecutionContext) -> None:
        self._context = context
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def checkout(self) -> AsyncIterator[RunToken]:
        async with self._lock:
            token = RunToken(self._context, uuid4().hex[:12])
            logger.info("Run %s checked out the execution context.", token.run_id)
            try:
                yield token
            finally:
                token.release()
                logger.info("Run %s released the execution context.", token.run_id)
