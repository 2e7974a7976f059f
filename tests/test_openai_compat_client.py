from __future__ import annotations

import json

import httpx
import pytest

from planforge.messages import Message
from planforge.models import openai_compat
from planforge.models.openai_compat import OpenAICompatChatModel, OpenAICompatError


def _ok(content: str = "ok") -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def test_payload_carries_messages_and_sampling_caps():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content.decode()))
        return _ok("hello")

    client = OpenAICompatChatModel(
        base_url="https://example.com/v1/",
        api_key="test-key",
        model="gpt-test",
        transport=httpx.MockTransport(handler),
    )
    reply = client.chat([Message.system("s"), Message.user("hi")], max_tokens=600, temperature=0.3)
    assert reply == "hello"
    assert requests[0]["messages"] == [
        {"role": "system", "content": "s"},
        {"role": "user", "content": "hi"},
    ]
    assert requests[0]["max_tokens"] == 600
    assert requests[0]["temperature"] == 0.3


def test_optional_caps_are_omitted():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content.decode()))
        return _ok()

    client = OpenAICompatChatModel(
        base_url="https://example.com",
        api_key="test-key",
        model="gpt-test",
        extra_headers={"X-Test": "yes"},
        transport=httpx.MockTransport(handler),
    )
    client.chat([Message.user("hi")])
    assert "max_tokens" not in requests[0]
    assert "temperature" not in requests[0]


@pytest.mark.parametrize(
    ("base_url", "expected"),
    [
        ("http://host:8000", "http://host:8000/v1/chat/completions"),
        ("http://host:8000/v1", "http://host:8000/v1/chat/completions"),
        ("http://host:8000/api/v1", "http://host:8000/api/v1/chat/completions"),
        ("host:8000/api/v1/", "http://host:8000/api/v1/chat/completions"),
    ],
)
def test_openai_base_url_variants(base_url: str, expected: str):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _ok()

    client = OpenAICompatChatModel(
        base_url=base_url,
        api_key="test-key",
        model="gpt-test",
        transport=httpx.MockTransport(handler),
    )
    client.chat([Message.user("hi")])
    assert requests[0].url == httpx.URL(expected)
    assert requests[0].headers["Authorization"] == "Bearer test-key"


def test_retries_server_errors_then_gives_up(monkeypatch):
    monkeypatch.setattr(openai_compat.time, "sleep", lambda seconds: None)
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            return httpx.Response(503, text="busy")
        return _ok("second time")

    client = OpenAICompatChatModel(
        base_url="https://example.com",
        api_key="k",
        model="m",
        transport=httpx.MockTransport(handler),
    )
    assert client.chat([Message.user("hi")]) == "second time"

    failing = OpenAICompatChatModel(
        base_url="https://example.com",
        api_key="k",
        model="m",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="down")),
    )
    with pytest.raises(OpenAICompatError):
        failing.chat([Message.user("hi")])


def test_remaining_tokens_estimate():
    client = OpenAICompatChatModel(base_url="https://example.com", api_key="k", model="m", context_window=100)
    messages = [Message.user("x" * 40)]
    assert client.count_tokens(messages) == 4 + 10
    assert client.remaining_tokens(messages) == 86
