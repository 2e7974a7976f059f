"""Structured replies: ask, validate against a schema, retry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from planforge.errors import ParseExhausted
from planforge.roles import AgentRole
from planforge.util.json_repair import JsonRepairError, load_json_object
from planforge.util.logging import get_logger, redact

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class StructuredResult(Generic[T]):
    """A validated reply plus the exact text the model produced."""

    data: T
    raw: str


def parse_reply(raw: str, schema: type[T]) -> T:
    payload = load_json_object(raw)
    return schema.model_validate(payload)


def request_structured(
    role: AgentRole,
    schema: type[T],
    retries: int,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> StructuredResult[T]:
    """Ask ``role``'s model for a reply matching ``schema``.

    Every attempt replays the same conversation; failed replies are never
    written to the role's history. Appending ``raw`` on success is the
    caller's job.
    """
    messages = role.messages()
    attempts = max(0, retries) + 1
    raw = ""
    for attempt in range(1, attempts + 1):
        raw = role.model.chat(messages, max_tokens=max_tokens, temperature=temperature)
        try:
            data = parse_reply(raw, schema)
        except (JsonRepairError, ValidationError) as exc:
            logger.warning(
                "%s reply %s/%s did not match %s: %s",
                role.name,
                attempt,
                attempts,
                schema.__name__,
                redact(str(exc), max_chars=300),
            )
            continue
        return StructuredResult(data=data, raw=raw)
    logger.error("%s exhausted %s attempt(s) for %s.", role.name, attempts, schema.__name__)
    raise ParseExhausted(schema.__name__, attempts, raw)
