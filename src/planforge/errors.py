"""Failure taxonomy for agent runs."""

from __future__ import annotations

from enum import Enum


class FailureTag(str, Enum):
    """Standardized failure categories for traces and logs."""

    PARSE_ERROR = "PARSE_ERROR"
    DISALLOWED_ACTION = "DISALLOWED_ACTION"
    COMMAND_NOT_FOUND = "COMMAND_NOT_FOUND"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    TOOL_ERROR = "TOOL_ERROR"
    BUDGET_FLUSH = "BUDGET_FLUSH"
    TURN_LIMIT = "TURN_LIMIT"


class PlanforgeError(Exception):
    """Base class for errors that abort a run."""

    tag: FailureTag = FailureTag.TOOL_ERROR


class ParseExhausted(PlanforgeError):
    """The model never produced a reply matching the expected shape."""

    tag = FailureTag.PARSE_ERROR

    def __init__(self, schema_name: str, attempts: int, raw: str) -> None:
        super().__init__(
            f"Could not parse {schema_name} after {attempts} attempt(s)"
        )
        self.schema_name = schema_name
        self.attempts = attempts
        self.raw = raw


class DisallowedAction(PlanforgeError):
    """The action gate denied a proposed action."""

    tag = FailureTag.DISALLOWED_ACTION

    def __init__(self, reason: str) -> None:
        super().__init__(f"Action disallowed: {reason}")
        self.reason = reason


class ToolNotFound(PlanforgeError):
    tag = FailureTag.TOOL_NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot find tool {name}")
        self.name = name


class CommandNotFound(PlanforgeError):
    tag = FailureTag.COMMAND_NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot find command {name}")
        self.name = name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CommandNotFound) and other.name == self.name

    def __hash__(self) -> int:
        return hash((type(self), self.name))


class ToolExecutionError(PlanforgeError):
    """A tool ran and failed. Raised from the original exception."""

    tag = FailureTag.TOOL_ERROR

    def __init__(self, tool: str, cause: BaseException) -> None:
        super().__init__(f"Tool {tool} failed: {cause.__class__.__name__}: {cause}")
        self.tool = tool
        self.cause = cause


class BudgetFlushFailure(PlanforgeError):
    """Summarizing history into memory failed. Recovered by truncation."""

    tag = FailureTag.BUDGET_FLUSH


class TurnLimitExceeded(PlanforgeError):
    tag = FailureTag.TURN_LIMIT

    def __init__(self, turns: int) -> None:
        super().__init__(f"No finish command after {turns} turn(s)")
        self.turns = turns
