"""Tool registry and dispatch."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Iterable

from pydantic import BaseModel

from planforge.errors import ToolExecutionError, ToolNotFound
from planforge.tools.base import Tool, ToolKind, ToolResult
from planforge.util.logging import get_logger, redact

if TYPE_CHECKING:
    from planforge.context import ExecutionContext

logger = get_logger(__name__)


def bind_arguments(tool: Tool, args: dict[str, Any] | list[Any]) -> BaseModel:
    """Validate arguments against a tool's schema.

    Positional lists are matched to the schema's fields in declaration order.
    """
    if isinstance(args, list):
        fields = list(tool.input_schema.model_fields)
        if len(args) > len(fields):
            raise ValueError(
                f"{tool.name} takes {len(fields)} argument(s), got {len(args)}"
            )
        args = dict(zip(fields, args))
    return tool.input_schema.model_validate(args)


class ToolRegistry:
    """Registry of tools available to the agents."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def of_kind(self, kind: ToolKind) -> list[Tool]:
        return [tool for tool in self._tools.values() if tool.kind == kind]

    def tool_list(self) -> str:
        """Render resources and actions as two sections for planning prompts."""
        sections = []
        for title, kind in (("Resources", ToolKind.RESOURCE), ("Actions", ToolKind.ACTION)):
            tools = self.of_kind(kind)
            body = "\n".join(tool.describe() for tool in tools) if tools else "    None."
            sections.append(f"{title}:\n{body}")
        return "\n\n".join(sections)

    def catalogue(self, exclude: Iterable[str] = ()) -> str:
        excluded = set(exclude)
        return "\n".join(
            tool.describe() for tool in self._tools.values() if tool.name not in excluded
        )

    async def execute(
        self,
        name: str,
        args: dict[str, Any] | list[Any],
        context: "ExecutionContext",
    ) -> str:
        """Run a tool by exact name and return its textual output."""
        tool = self.get(name)
        if tool is None:
            raise ToolNotFound(name)
        logger.info("Dispatching %s with %s", name, redact(repr(args), max_chars=300))
        try:
            data = bind_arguments(tool, args)
            result = tool.run(data, context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:  # noqa: BLE001
            logger.warning("Tool %s failed: %s", name, redact(str(exc), max_chars=300))
            raise ToolExecutionError(name, exc) from exc
        if not isinstance(result, ToolResult):
            result = ToolResult(output=result)
        return result.text()
