"""Filesystem action restricted to the workspace."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from planforge.context import ExecutionContext
from planforge.tools.base import Tool, ToolKind, ToolResult


class FileSystemInput(BaseModel):
    action: Literal["read", "write", "list"]
    path: str
    content: str | None = None


class FileSystemTool(Tool):
    name = "filesystem"
    description = "Read, write or list files under the workspace directory."
    kind = ToolKind.ACTION
    input_schema = FileSystemInput

    def __init__(self, workspace_dir: str) -> None:
        self.workspace_dir = Path(workspace_dir).resolve()
        self.workspace_dir.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, path: str) -> Path:
        target = (self.workspace_dir / path).resolve()
        if not target.is_relative_to(self.workspace_dir):
            raise ValueError("Path traversal detected")
        return target

    def run(self, data: BaseModel, context: ExecutionContext) -> ToolResult:
        input_data = FileSystemInput.model_validate(data)
        target = self._safe_path(input_data.path)
        if input_data.action == "read":
            return ToolResult(output=target.read_text(encoding="utf-8"))
        if input_data.action == "write":
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(input_data.content or "", encoding="utf-8")
            return ToolResult(output=f"Wrote {len(input_data.content or '')} characters to {input_data.path}")
        if not target.exists():
            return ToolResult(output="No entries.")
        entries = sorted(path.name for path in target.iterdir())
        return ToolResult(output="\n".join(entries) or "No entries.")
