"""Reply shapes the model must produce, and the plan data model."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceDecision(BaseModel):
    """Read-only information lookup."""

    kind: Literal["resource"] = "resource"
    name: str
    question: str | None = None


class ActionDecision(BaseModel):
    """State-changing operation."""

    kind: Literal["action"] = "action"
    name: str
    purpose: str | None = None


Decision = Annotated[Union[ResourceDecision, ActionDecision], Field(discriminator="kind")]


class Step(BaseModel):
    idea: str
    decision: Decision

    @field_validator("decision", mode="before")
    @classmethod
    def _unwrap_external_tag(cls, value: Any) -> Any:
        # {"resource": {...}} -> {"kind": "resource", ...}
        if isinstance(value, dict) and "kind" not in value and len(value) == 1:
            tag, body = next(iter(value.items()))
            if tag in ("resource", "action") and isinstance(body, dict):
                return {"kind": tag, **body}
        return value

    @property
    def is_action(self) -> bool:
        return self.decision.kind == "action"

    def render(self) -> str:
        body = self.decision.model_dump(exclude={"kind"}, exclude_none=True)
        return json.dumps(
            {"idea": self.idea, "decision": {self.decision.kind: body}},
            indent=2,
            ensure_ascii=False,
        )


class AssetSpec(BaseModel):
    name: str
    description: str

    def render(self) -> str:
        return json.dumps(self.model_dump(), indent=2, ensure_ascii=False)


class NamedAsset(BaseModel):
    name: str
    content: str


class Plan(BaseModel):
    thoughts: str
    steps: list[Step]
    assets: list[AssetSpec] = Field(default_factory=list)


class RevisedPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thoughts: str
    solution: str
    steps: list[Step] = Field(alias="revised remaining steps")


class FinalResponse(BaseModel):
    response: str


class MemorySummary(BaseModel):
    actions: list[str]
    observations: list[str]


class ToolAction(BaseModel):
    tool: str
    args: dict[str, Any] | list[Any] = Field(default_factory=dict)


class ThoughtAction(BaseModel):
    thoughts: str
    action: ToolAction


class EmployeeAction(BaseModel):
    command: str
    args: list[Any] | dict[str, Any] = Field(default_factory=list)


class EmployeeThought(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    previous_success: bool | None = Field(default=None, alias="previous command success")
    thoughts: str
    reasoning: str
    plan: str = Field(alias="long term plan")
    action: EmployeeAction
