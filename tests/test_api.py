from fastapi.testclient import TestClient

from conftest import RecordingTool, employee_reply, make_holder, plan_reply, summary_reply, thought_reply

from planforge.api import create_app
from planforge.config import Settings
from planforge.models.mock import MockChatModel


def _settings(tmp_path) -> Settings:
    return Settings(OPENAI_API_KEY=None, WORKSPACE_DIR=str(tmp_path))


def test_methodical_endpoint_returns_digest(tmp_path, dispatch_log):
    model = MockChatModel(
        scripted=[
            plan_reply([("lookup", "resource", "search")], [("answer", "the capital city")]),
            thought_reply("search", {"query": "capital of France"}),
            "Paris",
            summary_reply(),
        ],
        context_window=100_000,
    )
    holder, context = make_holder(model, [RecordingTool("search", dispatch_log, output="Paris")])
    client = TestClient(create_app(_settings(tmp_path), holder))

    response = client.post(
        "/runs/methodical",
        json={"task": "find the capital of France", "desire": "the capital city"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == "Assets:\n\n## Asset `answer`\nParis"
    assert body["assets"] == ["answer"]
    assert body["updates"][0]["kind"] == "plan"
    assert context.assets["answer"] == "Paris"


def test_methodical_endpoint_reports_gate_denial(tmp_path, dispatch_log):
    model = MockChatModel(
        scripted=[plan_reply([("x", "action", "search")]), thought_reply("search")],
        context_window=100_000,
    )
    holder, _ = make_holder(model, [RecordingTool("search", dispatch_log)])
    client = TestClient(create_app(_settings(tmp_path), holder))
    response = client.post(
        "/runs/methodical",
        json={"task": "t", "desire": "d", "allow_tools": ["calculator"]},
    )
    assert response.status_code == 422
    assert response.json()["detail"]["tag"] == "DISALLOWED_ACTION"
    assert dispatch_log == []


def test_employee_endpoint_reports_missing_command(tmp_path):
    model = MockChatModel(scripted=[employee_reply("transmogrify")], context_window=100_000)
    holder, _ = make_holder(model, [])
    client = TestClient(create_app(_settings(tmp_path), holder))
    response = client.post("/runs/employee", json={"task": "t"})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["tag"] == "COMMAND_NOT_FOUND"
    assert "transmogrify" in detail["reason"]


def test_exempt_resources_applies_to_configured_allow_list(tmp_path, dispatch_log):
    model = MockChatModel(
        scripted=[
            plan_reply([("lookup", "resource", "search")]),
            thought_reply("search", {"query": "weather"}),
            summary_reply(),
        ],
        context_window=100_000,
    )
    holder, _ = make_holder(model, [RecordingTool("search", dispatch_log, output="sunny")])
    settings = Settings(OPENAI_API_KEY=None, WORKSPACE_DIR=str(tmp_path), ALLOW_TOOLS="calculator")
    client = TestClient(create_app(settings, holder))

    response = client.post(
        "/runs/methodical",
        json={"task": "t", "desire": "d", "exempt_resources": True},
    )

    assert response.status_code == 200
    assert dispatch_log == ["search"]


def test_configured_allow_list_denies_without_exemption(tmp_path, dispatch_log):
    model = MockChatModel(
        scripted=[plan_reply([("lookup", "resource", "search")]), thought_reply("search")],
        context_window=100_000,
    )
    holder, _ = make_holder(model, [RecordingTool("search", dispatch_log)])
    settings = Settings(OPENAI_API_KEY=None, WORKSPACE_DIR=str(tmp_path), ALLOW_TOOLS="calculator")
    client = TestClient(create_app(settings, holder))

    response = client.post("/runs/methodical", json={"task": "t", "desire": "d"})

    assert response.status_code == 422
    assert response.json()["detail"]["tag"] == "DISALLOWED_ACTION"
    assert dispatch_log == []
