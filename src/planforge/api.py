"""FastAPI service exposing both agent strategies over one shared context."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from planforge.config import Settings
from planforge.context import ContextHolder
from planforge.errors import PlanforgeError
from planforge.factory import build_employee_agent, build_holder, build_methodical_agent
from planforge.safety.gate import AllowListGate
from planforge.updates import Update
from planforge.util.logging import get_logger

logger = get_logger(__name__)


class MethodicalRequest(BaseModel):
    task: str
    desire: str
    assets: str | None = None
    personality: str = ""
    allow_tools: list[str] | None = None
    exempt_resources: bool = False


class EmployeeRequest(BaseModel):
    task: str
    personality: str = ""


class RunResponse(BaseModel):
    result: str
    updates: list[dict[str, Any]]
    assets: list[str]


class UpdateCollector:
    def __init__(self) -> None:
        self.updates: list[dict[str, Any]] = []

    def __call__(self, update: Update) -> None:
        self.updates.append(update.model_dump(mode="json", by_alias=True))


def create_app(settings: Settings | None = None, holder: ContextHolder | None = None) -> FastAPI:
    app = FastAPI(title="planforge")
    app.state.settings = settings or Settings()
    app.state.holder = holder

    def get_holder(request: Request) -> ContextHolder:
        # Built lazily so importing the module has no filesystem side effects.
        if request.app.state.holder is None:
            request.app.state.holder = build_holder(request.app.state.settings)
        return request.app.state.holder

    def failure(exc: PlanforgeError) -> HTTPException:
        logger.warning("Run failed [%s]: %s", exc.tag.value, exc)
        return HTTPException(
            status_code=422,
            detail={"tag": exc.tag.value, "error_type": exc.__class__.__name__, "reason": str(exc)},
        )

    @app.post("/runs/methodical", response_model=RunResponse)
    async def run_methodical(body: MethodicalRequest, request: Request) -> RunResponse:
        holder = get_holder(request)
        collector = UpdateCollector()
        settings = request.app.state.settings
        allow_tools = body.allow_tools
        if allow_tools is None:
            allow_tools = settings.allow_tool_names or None
        gate = AllowListGate.from_names(allow_tools, exempt_resources=body.exempt_resources)
        agent = build_methodical_agent(
            settings, holder, on_update=collector, gate=gate
        )
        try:
            result = await agent.run(
                body.task, body.desire, assets=body.assets, personality=body.personality
            )
        except PlanforgeError as exc:
            raise failure(exc) from exc
        added = [item["asset"]["name"] for item in collector.updates if item["kind"] == "added_asset"]
        return RunResponse(result=result, updates=collector.updates, assets=added)

    @app.post("/runs/employee", response_model=RunResponse)
    async def run_employee(body: EmployeeRequest, request: Request) -> RunResponse:
        holder = get_holder(request)
        collector = UpdateCollector()
        agent = build_employee_agent(request.app.state.settings, holder, on_update=collector)
        try:
            await agent.run(body.task, personality=body.personality)
        except PlanforgeError as exc:
            raise failure(exc) from exc
        return RunResponse(result="finished", updates=collector.updates, assets=[])

    return app


app = create_app()
