"""Lifecycle updates emitted by agent runs, and simple sinks for them."""

from __future__ import annotations

from typing import Callable, Literal, Union

from pydantic import BaseModel

from planforge.schemas import (
    EmployeeThought,
    MemorySummary,
    NamedAsset,
    Plan,
    Step,
    ThoughtAction,
)
from planforge.util.logging import get_logger, redact


class PlanProduced(BaseModel):
    kind: Literal["plan"] = "plan"
    plan: Plan


class SelectedStep(BaseModel):
    kind: Literal["selected_step"] = "selected_step"
    index: int
    step: Step


class Thoughts(BaseModel):
    kind: Literal["thoughts"] = "thoughts"
    thoughts: ThoughtAction


class ActionResults(BaseModel):
    kind: Literal["action_results"] = "action_results"
    tool: str
    output: str


class AddedAsset(BaseModel):
    kind: Literal["added_asset"] = "added_asset"
    asset: NamedAsset


class SavedMemories(BaseModel):
    kind: Literal["saved_memories"] = "saved_memories"
    role: str
    memories: MemorySummary


class EmployeeDecision(BaseModel):
    kind: Literal["employee_decision"] = "employee_decision"
    thought: EmployeeThought


Update = Union[
    PlanProduced,
    SelectedStep,
    Thoughts,
    ActionResults,
    AddedAsset,
    SavedMemories,
    EmployeeDecision,
]

# Any exception raised by a sink aborts the run.
UpdateSink = Callable[[Update], None]


def ignore_updates(update: Update) -> None:
    return None


def fan_out(*sinks: UpdateSink) -> UpdateSink:
    """Deliver every update to each sink in order."""

    def sink(update: Update) -> None:
        for target in sinks:
            target(update)

    return sink


class LoggingSink:
    """Update sink that writes a one-line summary of each update to a logger."""

    def __init__(self, name: str = "planforge.updates", max_chars: int = 500) -> None:
        self.logger = get_logger(name)
        self.max_chars = max_chars

    def __call__(self, update: Update) -> None:
        self.logger.info("%s: %s", update.kind, redact(self.describe(update), max_chars=self.max_chars))

    def describe(self, update: Update) -> str:
        if isinstance(update, PlanProduced):
            steps = ", ".join(step.decision.name for step in update.plan.steps) or "no steps"
            assets = ", ".join(asset.name for asset in update.plan.assets) or "no assets"
            return f"{steps} -> {assets}"
        if isinstance(update, SelectedStep):
            return f"#{update.index + 1} {update.step.idea} ({update.step.decision.kind} {update.step.decision.name})"
        if isinstance(update, Thoughts):
            return f"{update.thoughts.thoughts} -> {update.thoughts.action.tool}"
        if isinstance(update, ActionResults):
            return f"{update.tool}: {update.output}"
        if isinstance(update, AddedAsset):
            return update.asset.name
        if isinstance(update, SavedMemories):
            count = len(update.memories.actions) + len(update.memories.observations)
            return f"{update.role} saved {count} memories"
        return f"{update.thought.thoughts} -> {update.thought.action.command}"
