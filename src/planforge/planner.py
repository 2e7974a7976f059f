"""LLM planner that turns a task into an ordered plan of steps and assets."""

from __future__ import annotations

from dataclasses import dataclass

from planforge.memory import MemoryStore, Weights
from planforge.messages import Message
from planforge.roles import AgentRole, ConversationSnapshot
from planforge.schemas import Plan
from planforge.structured import request_structured
from planforge.tools.registry import ToolRegistry
from planforge.updates import PlanProduced, UpdateSink
from planforge.util.logging import get_logger, redact

logger = get_logger(__name__)

PLAN_FORMAT = """
Respond in this JSON format:
```json
{
    "thoughts": "thoughts regarding steps and assets",
    "steps": [
        {
            "idea": "idea",
            "decision": {
                "resource": {
                    "name": "name",
                    "question": "what question does using this resource answer"
                }
            }
        },
        {
            "idea": "idea",
            "decision": {
                "action": {
                    "name": "name",
                    "purpose": "why use this action"
                }
            }
        }
    ],
    "assets": [
        {
            "name": "asset_name",
            "description": "description"
        }
    ]
}
```
""".strip()


@dataclass(frozen=True)
class PlanningPolicy:
    retries: int = 2
    max_tokens: int = 600
    temperature: float = 0.3
    recall_limit: int = 100
    recall_candidates: int = 30
    recall_weights: Weights = Weights()


def format_memories(contents: list[str]) -> str:
    if not contents:
        return "None found."
    return "\n".join(f"- {content}" for content in contents)


class Planner:
    """Builds the planner conversation and asks for exactly one plan.

    The declared tools are formatted into the prompt but not checked
    against the plan; the action gate is where tool use is enforced.
    """

    def __init__(
        self,
        memory: MemoryStore,
        on_update: UpdateSink,
        policy: PlanningPolicy | None = None,
    ) -> None:
        self.memory = memory
        self.on_update = on_update
        self.policy = policy or PlanningPolicy()

    def plan(
        self,
        role: AgentRole,
        registry: ToolRegistry,
        task: str,
        desire: str,
        assets: str | None = None,
        personality: str = "",
    ) -> Plan:
        role.clear()
        role.prompt.append(Message.system(f"Personality:\n{personality}".strip()))
        recalled = self.memory.recall(
            role,
            task,
            self.policy.recall_limit,
            self.policy.recall_weights,
            self.policy.recall_candidates,
        )
        role.prompt.append(
            Message.user(
                self._planning_prompt(
                    tools=registry.tool_list(),
                    task=task,
                    desire=desire,
                    memories=format_memories([record.content for record in recalled]),
                    assets=assets or "No assets.",
                )
            )
        )
        result = request_structured(
            role,
            Plan,
            self.policy.retries,
            max_tokens=self.policy.max_tokens,
            temperature=self.policy.temperature,
        )
        role.push(Message.assistant(result.raw))
        plan = result.data
        logger.info(
            "Planned %s step(s) and %s asset(s): %s",
            len(plan.steps),
            len(plan.assets),
            redact(plan.thoughts, max_chars=300),
        )
        self.on_update(PlanProduced(plan=plan))
        return plan

    def handoff(self, planner: AgentRole, executor: AgentRole) -> ConversationSnapshot:
        """Give the executor the planner's full prompt and history."""
        snapshot = planner.handoff()
        executor.adopt(snapshot)
        return snapshot

    def _planning_prompt(
        self, tools: str, task: str, desire: str, memories: str, assets: str
    ) -> str:
        return f"""
{tools}

You have been given these resources and actions.
You may use these resources and actions, and only these.

Here is your new task:
{task}

Here is a list of your memories:
{memories}

Here is a list of assets previously saved:
{assets}

Create a list of steps of what you need to do and which resource or action you will use.
Only use one resource or action for each step.

Your goal is to give a response with the following information:
{desire}

You should try to save that precise information through assets.

Do not specify arguments.
Do not repeat steps.
Keep your plan as short and concise as possible.

After you are done planning steps, additionally plan to save one or more assets as output.

{PLAN_FORMAT}
""".strip()
