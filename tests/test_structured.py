import json

import pytest

from planforge.errors import ParseExhausted
from planforge.messages import Message
from planforge.models.mock import MockChatModel
from planforge.roles import AgentRole
from planforge.schemas import (
    EmployeeThought,
    FinalResponse,
    MemorySummary,
    Plan,
    RevisedPlan,
    ThoughtAction,
)
from planforge.structured import request_structured


def _role(*replies: str) -> AgentRole:
    role = AgentRole(name="executor", model=MockChatModel(scripted=list(replies)))
    role.prompt.append(Message.system("be precise"))
    role.push(Message.user("what next?"))
    return role


def test_returns_on_first_valid_reply():
    raw = '{"thoughts": "look it up", "action": {"tool": "search", "args": {"query": "x"}}}'
    role = _role(raw, "unused")
    result = request_structured(role, ThoughtAction, 2, max_tokens=1000, temperature=0.5)
    assert result.data.action.tool == "search"
    assert result.raw == raw
    assert len(role.model.calls) == 1
    assert role.model.calls[0].max_tokens == 1000
    assert role.model.calls[0].temperature == 0.5


def test_retries_until_valid_without_touching_history():
    role = _role("not json", '{"response": "done"}')
    before = list(role.history)
    result = request_structured(role, FinalResponse, 2)
    assert result.data.response == "done"
    assert len(role.model.calls) == 2
    assert role.history == before
    assert role.model.calls[0].messages == role.model.calls[1].messages


def test_exhausted_after_initial_plus_retries():
    role = _role("nope", '{"wrong": 1}', "still nope", "never asked")
    with pytest.raises(ParseExhausted) as excinfo:
        request_structured(role, MemorySummary, 2)
    assert excinfo.value.attempts == 3
    assert excinfo.value.raw == "still nope"
    assert len(role.model.calls) == 3
    assert [m.content for m in role.history] == ["what next?"]


def test_plan_accepts_fenced_reply_with_tagged_decisions():
    raw = """Here is my plan:
```json
{
    "thoughts": "search then write",
    "steps": [
        {"idea": "lookup", "decision": {"resource": {"name": "search", "question": "where?"}}},
        {"idea": "save", "decision": {"action": {"name": "filesystem", "purpose": "keep it"}}},
    ],
    "assets": [{"name": "answer", "description": "the capital city"}]
}
```"""
    result = request_structured(_role(raw), Plan, 0)
    first, second = result.data.steps
    assert first.decision.kind == "resource"
    assert first.decision.question == "where?"
    assert not first.is_action
    assert second.is_action
    assert second.decision.purpose == "keep it"
    assert json.loads(first.render())["decision"] == {"resource": {"name": "search", "question": "where?"}}


def test_revised_plan_and_employee_thought_use_spaced_keys():
    revised = json.dumps(
        {
            "thoughts": "t",
            "solution": "s",
            "revised remaining steps": [{"idea": "i", "decision": {"resource": {"name": "search"}}}],
        }
    )
    plan = request_structured(_role(revised), RevisedPlan, 0).data
    assert plan.steps[0].decision.name == "search"

    thought = json.dumps(
        {
            "previous command success": True,
            "thoughts": "t",
            "reasoning": "r",
            "long term plan": "p",
            "action": {"command": "lookup", "args": ["france"]},
        }
    )
    parsed = request_structured(_role(thought), EmployeeThought, 0).data
    assert parsed.previous_success is True
    assert parsed.plan == "p"
    assert parsed.action.args == ["france"]


def test_unknown_decision_tag_is_a_parse_failure():
    raw = json.dumps({"thoughts": "t", "steps": [{"idea": "i", "decision": {"teleport": {"name": "x"}}}]})
    with pytest.raises(ParseExhausted):
        request_structured(_role(raw), Plan, 0)
