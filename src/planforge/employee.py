"""Employee agent: decide one command, run it, repeat until finish."""

from __future__ import annotations

import asyncio
from typing import Iterable

from planforge.budget import BudgetPolicy, ContextBudget
from planforge.context import ContextHolder, ExecutionContext
from planforge.errors import CommandNotFound, TurnLimitExceeded
from planforge.messages import Message
from planforge.schemas import EmployeeThought
from planforge.structured import request_structured
from planforge.updates import EmployeeDecision, UpdateSink, ignore_updates
from planforge.util.logging import get_logger, redact

logger = get_logger(__name__)

FINISH_COMMAND = "finish"
NEXT_COMMAND_PROMPT = (
    "Please run your next command. If you are done, keep your 'command' field as 'finish'"
)
REPLY_FORMAT = """
Reply in this format:

```json
{
    "previous command success": true / false / null,
    "thoughts": "...",
    "reasoning": "...",
    "long term plan": "...",
    "action": {
        "command": "...",
        "args": [
            "..."
        ]
    }
}
```

Reply in that format exactly.
Make sure every field is filled in detail.
Keep every field in that exact order.
""".strip()


class EmployeeAgent:
    """Single-role command loop with no plan, gate or assets."""

    def __init__(
        self,
        holder: ContextHolder,
        on_update: UpdateSink = ignore_updates,
        disabled_commands: Iterable[str] = (),
        max_turns: int | None = None,
        retries: int = 2,
        max_tokens: int = 400,
        budget_policy: BudgetPolicy | None = None,
    ) -> None:
        self.holder = holder
        self.on_update = on_update
        self.disabled_commands = set(disabled_commands)
        self.max_turns = max_turns
        self.retries = retries
        self.max_tokens = max_tokens
        self.budget_policy = budget_policy or BudgetPolicy()
        self.dispatched: list[str] = []

    async def run(self, task: str, personality: str = "") -> None:
        async with self.holder.checkout() as token:
            logger.info("Employee run %s started: %s", token.run_id, redact(task, max_chars=200))
            await self._run(token.context, task, personality)

    def run_sync(self, task: str, personality: str = "") -> None:
        asyncio.run(self.run(task, personality=personality))

    def _seed(self, context: ExecutionContext, task: str, personality: str) -> None:
        role = context.agents.employee
        role.clear()
        role.prompt.append(
            Message.system(
                f"Personality: {personality}\n\n"
                "You will be given one task.\n"
                "Your goal is to complete that task, one command at a time.\n"
                "Do it as fast as possible."
            )
        )
        catalogue = context.registry.catalogue(exclude=self.disabled_commands)
        role.end_prompt.append(
            Message.user(
                "You have access to these commands:\n"
                f"{catalogue}\n"
                f"    {FINISH_COMMAND}() -> None\n"
                "        A special command. Use this command when you are done with your assignment."
            )
        )
        role.prompt.append(Message.user(f"Your task is: {task}"))
        role.prompt.append(Message.user(REPLY_FORMAT))
        role.push(Message.user(NEXT_COMMAND_PROMPT))

    async def _run(self, context: ExecutionContext, task: str, personality: str) -> None:
        role = context.agents.employee
        budget = ContextBudget(context.memory, self.on_update, self.budget_policy)
        self.dispatched = []
        self._seed(context, task, personality)

        turns = 0
        while True:
            if self.max_turns is not None and turns >= self.max_turns:
                raise TurnLimitExceeded(turns)
            turns += 1
            result = request_structured(role, EmployeeThought, self.retries, max_tokens=self.max_tokens)
            role.push(Message.assistant(result.raw))
            thought = result.data
            self.on_update(EmployeeDecision(thought=thought))

            command = thought.action.command
            if command == FINISH_COMMAND:
                logger.info("Employee finished after %s turn(s).", turns)
                return
            if command in self.disabled_commands or context.registry.get(command) is None:
                raise CommandNotFound(command)

            output = await context.registry.execute(command, thought.action.args, context)
            self.dispatched.append(command)
            role.push(Message.user(output))
            role.push(Message.user(NEXT_COMMAND_PROMPT))
            budget.enforce(role)
