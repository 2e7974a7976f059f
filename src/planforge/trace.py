"""Trace recorder for agent runs."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from planforge.errors import PlanforgeError
from planforge.updates import Update
from planforge.util.logging import redact


@dataclass
class TraceRecorder:
    """Update sink that keeps a timestamped, redacted event log of a run."""

    trace_id: str
    workspace_dir: str
    started_at: float = field(default_factory=time.time)
    events: list[dict[str, Any]] = field(default_factory=list)

    def __call__(self, update: Update) -> None:
        self.record(update.kind, json.loads(redact(update.model_dump_json(by_alias=True))))

    def record(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append(
            {
                "type": event_type,
                "timestamp": time.time(),
                "payload": payload,
            }
        )

    def record_failure(self, error: BaseException) -> None:
        tag = error.tag.value if isinstance(error, PlanforgeError) else "UNHANDLED"
        self.record(
            "failure",
            {"tag": tag, "error_type": error.__class__.__name__, "reason": redact(str(error))},
        )

    def finalize(self, stats: dict[str, Any] | None = None) -> str:
        trace_dir = Path(self.workspace_dir) / "traces"
        trace_dir.mkdir(parents=True, exist_ok=True)
        trace_path = trace_dir / f"{self.trace_id}.json"
        payload = {
            "trace_id": self.trace_id,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "stats": stats or {},
            "events": self.events,
        }
        trace_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return str(trace_path)
