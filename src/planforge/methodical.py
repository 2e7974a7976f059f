"""Methodical agent: plan, execute each step through the gate, write assets."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from planforge.budget import BudgetPolicy, ContextBudget
from planforge.context import ContextHolder, ExecutionContext
from planforge.messages import Message
from planforge.planner import Planner, PlanningPolicy
from planforge.safety.gate import ActionGate, allow_all, check_action
from planforge.schemas import AssetSpec, NamedAsset, Step, ThoughtAction
from planforge.structured import request_structured
from planforge.updates import (
    ActionResults,
    AddedAsset,
    SelectedStep,
    Thoughts,
    UpdateSink,
    ignore_updates,
)
from planforge.util.logging import get_logger, redact

logger = get_logger(__name__)

NO_ASSETS_CHANGED = "No assets changed."


class RunPhase(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING_STEP = "executing_step"
    DISPATCHING = "dispatching"
    WRITING_ASSETS = "writing_assets"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionPolicy:
    step_retries: int = 2
    step_max_tokens: int = 1000
    step_temperature: float = 0.5
    asset_max_tokens: int = 800
    asset_temperature: float = 0.3


def format_digest(changed: list[NamedAsset]) -> str:
    if not changed:
        return f"Assets:\n\n{NO_ASSETS_CHANGED}"
    body = "\n".join(f"## Asset `{asset.name}`\n{asset.content}" for asset in changed)
    return f"Assets:\n\n{body}"


def _step_prompt(step: Step, asset_names: list[str]) -> str:
    assets = "\n".join(f"- {name}" for name in asset_names) or "No assets."
    return f"""
Now you will carry out the next step:
{step.render()}

You must carry out this step with one entire action.
Include ALL information.

Ensure you don't hallucinate; only give information that you actually have.

Assets:
{assets}

Respond in this JSON format:
```json
{{
    "thoughts": "thoughts",
    "action": {{
        "tool": "tool",
        "args": {{}}
    }}
}}
```
""".strip()


def _asset_prompt(asset: AssetSpec) -> str:
    return f"""
Now, you will write this asset:

{asset.render()}

Respond in pure plaintext format with a detailed markdown response.
Include all necessary details as the description stated, alongside any necessary sources or explanation of where you got the information.
""".strip()


class MethodicalAgent:
    """Planner/executor agent.

    A run checks out the execution context, plans once, executes every step
    in order, then writes the planned assets. The first error aborts the
    run; there is no partial success.
    """

    def __init__(
        self,
        holder: ContextHolder,
        gate: ActionGate = allow_all,
        on_update: UpdateSink = ignore_updates,
        budget_policy: BudgetPolicy | None = None,
        planning_policy: PlanningPolicy | None = None,
        execution_policy: ExecutionPolicy | None = None,
    ) -> None:
        self.holder = holder
        self.gate = gate
        self.on_update = on_update
        self.budget_policy = budget_policy or BudgetPolicy()
        self.planning_policy = planning_policy or PlanningPolicy()
        self.execution_policy = execution_policy or ExecutionPolicy()
        self.phase = RunPhase.IDLE
        self.step_index: int | None = None

    def _enter(self, phase: RunPhase, step_index: int | None = None) -> None:
        self.phase = phase
        self.step_index = step_index
        if step_index is None:
            logger.info("Methodical run: %s", phase.value)
        else:
            logger.info("Methodical run: %s (step %s)", phase.value, step_index + 1)

    async def run(
        self,
        task: str,
        desire: str,
        assets: str | None = None,
        personality: str = "",
    ) -> str:
        async with self.holder.checkout() as token:
            logger.info("Methodical run %s started: %s", token.run_id, redact(task, max_chars=200))
            try:
                return await self._run(token.context, task, desire, assets, personality)
            except Exception:
                self._enter(RunPhase.FAILED, self.step_index)
                raise

    def run_sync(
        self,
        task: str,
        desire: str,
        assets: str | None = None,
        personality: str = "",
    ) -> str:
        return asyncio.run(self.run(task, desire, assets=assets, personality=personality))

    async def _run(
        self,
        context: ExecutionContext,
        task: str,
        desire: str,
        assets: str | None,
        personality: str,
    ) -> str:
        executor = context.agents.executor
        budget = ContextBudget(context.memory, self.on_update, self.budget_policy)
        executor.clear()

        self._enter(RunPhase.PLANNING)
        planner = Planner(context.memory, self.on_update, self.planning_policy)
        plan = planner.plan(
            context.agents.planner,
            context.registry,
            task,
            desire,
            assets=assets,
            personality=personality,
        )
        planner.handoff(context.agents.planner, executor)

        for index, step in enumerate(plan.steps):
            self._enter(RunPhase.EXECUTING_STEP, index)
            await self._execute_step(context, budget, index, step)

        self._enter(RunPhase.WRITING_ASSETS)
        changed = self._write_assets(context, plan.assets)
        budget.flush(executor)
        self._enter(RunPhase.DONE)
        return format_digest(changed)

    async def _execute_step(
        self,
        context: ExecutionContext,
        budget: ContextBudget,
        index: int,
        step: Step,
    ) -> None:
        executor = context.agents.executor
        policy = self.execution_policy
        self.on_update(SelectedStep(index=index, step=step))

        executor.push(Message.user(_step_prompt(step, sorted(context.assets))))
        result = request_structured(
            executor,
            ThoughtAction,
            policy.step_retries,
            max_tokens=policy.step_max_tokens,
            temperature=policy.step_temperature,
        )
        executor.push(Message.assistant(result.raw))
        thoughts = result.data

        self.on_update(Thoughts(thoughts=thoughts))
        check_action(self.gate, thoughts.action, step)

        self._enter(RunPhase.DISPATCHING, index)
        output = await context.registry.execute(
            thoughts.action.tool, thoughts.action.args, context
        )
        executor.push(Message.user(output))
        self.on_update(ActionResults(tool=thoughts.action.tool, output=output))
        budget.enforce(executor)

    def _write_assets(
        self, context: ExecutionContext, specs: list[AssetSpec]
    ) -> list[NamedAsset]:
        executor = context.agents.executor
        policy = self.execution_policy
        changed: dict[str, NamedAsset] = {}
        for spec in specs:
            executor.push(Message.user(_asset_prompt(spec)))
            try:
                content = executor.model.chat(
                    executor.messages(),
                    max_tokens=policy.asset_max_tokens,
                    temperature=policy.asset_temperature,
                )
            finally:
                executor.pop()
            context.assets[spec.name] = content
            asset = NamedAsset(name=spec.name, content=content)
            changed[spec.name] = asset
            logger.info("Wrote asset %s (%s chars).", spec.name, len(content))
            self.on_update(AddedAsset(asset=asset))
        return list(changed.values())
