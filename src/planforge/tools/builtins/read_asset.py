"""Resource that reads assets saved by earlier runs."""

from __future__ import annotations

from pydantic import BaseModel

from planforge.context import ExecutionContext
from planforge.tools.base import Tool, ToolKind, ToolResult


class ReadAssetInput(BaseModel):
    name: str


class ReadAssetTool(Tool):
    name = "read_asset"
    description = "Read the content of a previously saved asset by name."
    kind = ToolKind.RESOURCE
    input_schema = ReadAssetInput

    def run(self, data: BaseModel, context: ExecutionContext) -> ToolResult:
        payload = ReadAssetInput.model_validate(data)
        if payload.name not in context.assets:
            known = ", ".join(sorted(context.assets)) or "none"
            raise KeyError(f"No asset named {payload.name!r} (known: {known})")
        return ToolResult(output=context.assets[payload.name])
