"""Action gate: approve or deny proposed tool calls before dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from planforge.errors import DisallowedAction
from planforge.schemas import Step, ToolAction


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GateDecision":
        return cls(allowed=False, reason=reason)


# The step is passed along so a gate can treat resource and action steps
# differently; the default gates do not.
ActionGate = Callable[[ToolAction, Step], GateDecision]


def allow_all(action: ToolAction, step: Step) -> GateDecision:
    return GateDecision.allow()


@dataclass
class AllowListGate:
    """Allow only tools named in ``allow_tools``; ``None`` allows everything."""

    allow_tools: list[str] | None = None
    exempt_resources: bool = False

    @classmethod
    def from_names(cls, names: Iterable[str] | None, exempt_resources: bool = False) -> "AllowListGate":
        if names is None:
            return cls(allow_tools=None, exempt_resources=exempt_resources)
        cleaned = [name.strip() for name in names if name.strip()]
        return cls(allow_tools=cleaned, exempt_resources=exempt_resources)

    def is_tool_allowed(self, name: str) -> bool:
        if self.allow_tools is None:
            return True
        return name in self.allow_tools

    def __call__(self, action: ToolAction, step: Step) -> GateDecision:
        if self.exempt_resources and not step.is_action:
            return GateDecision.allow()
        if self.is_tool_allowed(action.tool):
            return GateDecision.allow()
        allowed = ", ".join(self.allow_tools or [])
        return GateDecision.deny(f"tool {action.tool!r} is not in the allow-list ({allowed})")


def check_action(gate: ActionGate, action: ToolAction, step: Step) -> None:
    decision = gate(action, step)
    if not decision.allowed:
        raise DisallowedAction(decision.reason or f"tool {action.tool!r} was denied")
