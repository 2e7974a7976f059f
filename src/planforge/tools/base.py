"""Base tool definitions."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable

from pydantic import BaseModel

if TYPE_CHECKING:
    from planforge.context import ExecutionContext


class ToolKind(str, Enum):
    RESOURCE = "resource"
    ACTION = "action"


class ToolResult(BaseModel):
    output: Any

    def text(self) -> str:
        if isinstance(self.output, str):
            return self.output
        return json.dumps(self.output, indent=2, ensure_ascii=False, default=str)


class Tool(ABC):
    """Abstract tool.

    ``run`` may be a plain method or a coroutine; the registry awaits the
    result when needed.
    """

    name: str
    description: str
    kind: ToolKind = ToolKind.ACTION
    input_schema: type[BaseModel]

    @abstractmethod
    def run(
        self, data: BaseModel, context: "ExecutionContext"
    ) -> ToolResult | Awaitable[ToolResult]:
        """Execute the tool."""
        raise NotImplementedError

    def signature(self) -> str:
        params = []
        for field_name, info in self.input_schema.model_fields.items():
            annotation = getattr(info.annotation, "__name__", None) or str(info.annotation)
            suffix = "" if info.is_required() else "?"
            params.append(f"{field_name}{suffix}: {annotation}")
        return f"{self.name}({', '.join(params)})"

    def describe(self) -> str:
        return f"    {self.signature()}\n        {self.description}"
