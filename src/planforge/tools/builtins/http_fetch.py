"""HTTP fetch resource."""

from __future__ import annotations

import httpx
from pydantic import BaseModel, Field

from planforge.context import ExecutionContext
from planforge.tools.base import Tool, ToolKind, ToolResult


class HttpFetchInput(BaseModel):
    url: str
    timeout_seconds: int = Field(default=10, ge=1, le=60)
    max_bytes: int = Field(default=200_000, ge=1, le=1_000_000)


class HttpFetchTool(Tool):
    name = "http_fetch"
    description = "Fetch a URL via HTTP GET and return the status and body."
    kind = ToolKind.RESOURCE
    input_schema = HttpFetchInput

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    async def run(self, data: BaseModel, context: ExecutionContext) -> ToolResult:
        input_data = HttpFetchInput.model_validate(data)
        async with httpx.AsyncClient(
            timeout=input_data.timeout_seconds, transport=self.transport
        ) as client:
            response = await client.get(input_data.url)
        body = response.content[: input_data.max_bytes].decode("utf-8", errors="ignore")
        return ToolResult(output=f"HTTP {response.status_code}\n\n{body}")
