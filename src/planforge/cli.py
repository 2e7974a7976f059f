"""Command-line interface."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any
from uuid import uuid4

from planforge.config import Settings
from planforge.errors import PlanforgeError
from planforge.factory import (
    build_employee_agent,
    build_holder,
    build_methodical_agent,
)
from planforge.safety.gate import AllowListGate
from planforge.trace import TraceRecorder
from planforge.updates import LoggingSink, UpdateSink, fan_out


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="planforge CLI")
    parser.add_argument("--base-url", dest="base_url")
    parser.add_argument("--api-key", dest="api_key")
    parser.add_argument("--model", dest="model")
    parser.add_argument("--workspace", dest="workspace")
    parser.add_argument("--context-window", type=int, dest="context_window")
    parser.add_argument("--trace", action="store_true", dest="trace", help="Write a JSON trace")
    parser.add_argument("--personality", default="", dest="personality")
    sub = parser.add_subparsers(dest="command", required=True)

    methodical = sub.add_parser("methodical", help="Plan, execute steps, write assets")
    methodical.add_argument("task")
    methodical.add_argument("--desire", required=True, help="Desired outcome")
    methodical.add_argument("--assets", help="Text describing previously saved assets")
    methodical.add_argument(
        "--allow", action="append", dest="allow", help="Allow a tool (repeatable)"
    )
    methodical.add_argument(
        "--exempt-resources",
        action="store_true",
        dest="exempt_resources",
        help="Let resource steps bypass the allow-list",
    )

    employee = sub.add_parser("employee", help="Run commands until finish")
    employee.add_argument("task")
    employee.add_argument("--max-turns", type=int, dest="max_turns")
    employee.add_argument(
        "--disable", action="append", dest="disable", help="Hide a command (repeatable)"
    )
    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    data: dict[str, Any] = settings.model_dump()
    if args.base_url:
        data["openai_base_url"] = args.base_url
    if args.api_key:
        data["openai_api_key"] = args.api_key
    if args.model:
        data["openai_model"] = args.model
    if args.workspace:
        data["workspace_dir"] = args.workspace
    if args.context_window:
        data["context_window_tokens"] = args.context_window
    if getattr(args, "allow", None):
        data["allow_tools"] = ",".join(args.allow)
    if getattr(args, "disable", None):
        data["disabled_commands"] = ",".join(args.disable)
    if getattr(args, "max_turns", None):
        data["employee_max_turns"] = args.max_turns
    return Settings(**data)


async def run(args: argparse.Namespace, settings: Settings, sink: UpdateSink) -> str:
    holder = build_holder(settings)
    if args.command == "methodical":
        gate = AllowListGate.from_names(
            settings.allow_tool_names or None, exempt_resources=args.exempt_resources
        )
        agent = build_methodical_agent(settings, holder, on_update=sink, gate=gate)
        return await agent.run(
            args.task, args.desire, assets=args.assets, personality=args.personality
        )
    employee = build_employee_agent(settings, holder, on_update=sink)
    await employee.run(args.task, personality=args.personality)
    return "Finished: " + (", ".join(employee.dispatched) or "no commands run")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = apply_overrides(Settings(), args)
    trace = TraceRecorder(trace_id=uuid4().hex[:12], workspace_dir=settings.workspace_dir) if args.trace else None
    sink = fan_out(LoggingSink(), trace) if trace else LoggingSink()
    try:
        result = asyncio.run(run(args, settings, sink))
    except PlanforgeError as exc:
        if trace:
            trace.record_failure(exc)
        print(f"Run failed [{exc.tag.value}]: {exc}", file=sys.stderr)
        return 1
    finally:
        if trace:
            print("Trace:", trace.finalize(), file=sys.stderr)
    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
