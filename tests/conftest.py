from __future__ import annotations

import json
from typing import Any

import pytest
from pydantic import BaseModel

from planforge.context import ContextHolder, ExecutionContext
from planforge.models.mock import MockChatModel
from planforge.tools.base import Tool, ToolKind, ToolResult
from planforge.tools.registry import ToolRegistry


class QueryInput(BaseModel):
    query: str = ""


class RecordingTool(Tool):
    """Returns a canned output and records every call into a shared log."""

    input_schema = QueryInput

    def __init__(
        self,
        name: str,
        log: list[str],
        output: str = "ok",
        kind: ToolKind = ToolKind.RESOURCE,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.description = f"{name} tool"
        self.kind = kind
        self.log = log
        self.output = output
        self.error = error
        self.queries: list[str] = []

    async def run(self, data: BaseModel, context: ExecutionContext) -> ToolResult:
        payload = QueryInput.model_validate(data)
        self.log.append(self.name)
        self.queries.append(payload.query)
        if self.error is not None:
            raise self.error
        return ToolResult(output=self.output)


class UpdateLog:
    def __init__(self) -> None:
        self.updates: list[Any] = []

    def __call__(self, update: Any) -> None:
        self.updates.append(update)

    def kinds(self) -> list[str]:
        return [update.kind for update in self.updates]

    def of_kind(self, kind: str) -> list[Any]:
        return [update for update in self.updates if update.kind == kind]


def plan_reply(steps: list[tuple[str, str, str]], assets: list[tuple[str, str]] = ()) -> str:
    """Build a plan reply from (idea, kind, name) steps and (name, description) assets."""
    return json.dumps(
        {
            "thoughts": "plan it",
            "steps": [
                {"idea": idea, "decision": {kind: {"name": name}}} for idea, kind, name in steps
            ],
            "assets": [{"name": name, "description": description} for name, description in assets],
        }
    )


def thought_reply(tool: str, args: dict[str, Any] | None = None) -> str:
    return json.dumps({"thoughts": f"use {tool}", "action": {"tool": tool, "args": args or {}}})


def summary_reply(actions: list[str] | None = None, observations: list[str] | None = None) -> str:
    return json.dumps({"actions": actions or ["did things"], "observations": observations or ["saw things"]})


def employee_reply(command: str, args: list[Any] | dict[str, Any] | None = None) -> str:
    return json.dumps(
        {
            "previous command success": None,
            "thoughts": f"run {command}",
            "reasoning": "it is the next thing to do",
            "long term plan": "finish the task",
            "action": {"command": command, "args": args if args is not None else []},
        }
    )


@pytest.fixture
def dispatch_log() -> list[str]:
    return []


@pytest.fixture
def updates() -> UpdateLog:
    return UpdateLog()


def make_holder(
    model: MockChatModel, tools: list[Tool]
) -> tuple[ContextHolder, ExecutionContext]:
    registry = ToolRegistry()
    registry.register_all(tools)
    context = ExecutionContext.create(model, registry)
    return ContextHolder(context), context
