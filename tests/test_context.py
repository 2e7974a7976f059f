import asyncio

import pytest

from planforge.context import ContextHolder, ExecutionContext
from planforge.memory import InMemoryStore
from planforge.models.mock import MockChatModel
from planforge.tools.registry import ToolRegistry


def _holder() -> ContextHolder:
    return ContextHolder(ExecutionContext.create(MockChatModel(), ToolRegistry()))


def test_create_builds_three_roles_and_default_memory():
    context = ExecutionContext.create(MockChatModel(), ToolRegistry())
    assert [context.agents.planner.name, context.agents.executor.name, context.agents.employee.name] == [
        "planner",
        "executor",
        "employee",
    ]
    assert isinstance(context.memory, InMemoryStore)
    assert context.assets == {}


@pytest.mark.asyncio
async def test_runs_serialize_on_checkout():
    holder = _holder()
    events = []

    async def run(name: str) -> None:
        async with holder.checkout() as token:
            events.append(f"{name}:start")
            token.context.assets[name] = name
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(run("a"), run("b"))
    assert events == ["a:start", "a:end", "b:start", "b:end"]


@pytest.mark.asyncio
async def test_token_is_released_on_exit_and_error():
    holder = _holder()
    async with holder.checkout() as token:
        assert token.active
        assert holder.busy
    assert not token.active
    with pytest.raises(RuntimeError, match="released"):
        token.context

    with pytest.raises(ValueError):
        async with holder.checkout() as failing:
            raise ValueError("boom")
    assert not failing.active
    assert not holder.busy
