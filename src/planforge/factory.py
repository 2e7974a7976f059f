"""Shared construction helpers for models, tools, gates and agents."""

from __future__ import annotations

import json

from planforge.budget import BudgetPolicy
from planforge.config import Settings
from planforge.context import ContextHolder, ExecutionContext
from planforge.employee import EmployeeAgent
from planforge.memory import MemoryStore
from planforge.methodical import MethodicalAgent
from planforge.models.base import BaseChatModel
from planforge.models.mock import MockChatModel
from planforge.models.openai_compat import OpenAICompatChatModel
from planforge.safety.gate import AllowListGate
from planforge.tools.builtins.calculator import CalculatorTool
from planforge.tools.builtins.filesystem import FileSystemTool
from planforge.tools.builtins.http_fetch import HttpFetchTool
from planforge.tools.builtins.read_asset import ReadAssetTool
from planforge.tools.registry import ToolRegistry
from planforge.updates import UpdateSink, ignore_updates


def build_model(settings: Settings, use_mock: bool = False) -> BaseChatModel:
    if use_mock or not settings.openai_api_key:
        return MockChatModel(
            context_window=settings.context_window_tokens,
            token_char_ratio=settings.token_char_ratio,
        )
    extra_headers = None
    if settings.openai_extra_headers:
        extra_headers = json.loads(settings.openai_extra_headers)
    return OpenAICompatChatModel(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
        extra_headers=extra_headers,
        context_window=settings.context_window_tokens,
        token_char_ratio=settings.token_char_ratio,
    )


def build_registry(settings: Settings) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(CalculatorTool())
    registry.register(HttpFetchTool())
    registry.register(ReadAssetTool())
    registry.register(FileSystemTool(settings.workspace_dir))
    return registry


def build_budget_policy(settings: Settings) -> BudgetPolicy:
    return BudgetPolicy(
        low_water=settings.budget_low_water,
        high_water=settings.budget_high_water,
    )


def build_gate(settings: Settings) -> AllowListGate:
    return AllowListGate.from_names(settings.allow_tool_names or None)


def build_holder(
    settings: Settings,
    model: BaseChatModel | None = None,
    registry: ToolRegistry | None = None,
    memory: MemoryStore | None = None,
) -> ContextHolder:
    context = ExecutionContext.create(
        model or build_model(settings),
        registry or build_registry(settings),
        memory=memory,
    )
    return ContextHolder(context)


def build_methodical_agent(
    settings: Settings,
    holder: ContextHolder,
    *,
    on_update: UpdateSink = ignore_updates,
    gate: AllowListGate | None = None,
) -> MethodicalAgent:
    return MethodicalAgent(
        holder,
        gate=gate or build_gate(settings),
        on_update=on_update,
        budget_policy=build_budget_policy(settings),
    )


def build_employee_agent(
    settings: Settings,
    holder: ContextHolder,
    *,
    on_update: UpdateSink = ignore_updates,
) -> EmployeeAgent:
    return EmployeeAgent(
        holder,
        on_update=on_update,
        disabled_commands=settings.disabled_command_names,
        max_turns=settings.employee_max_turns,
        budget_policy=build_budget_policy(settings),
    )
