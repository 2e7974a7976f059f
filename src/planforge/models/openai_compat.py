"""OpenAI-compatible chat model client."""

from __future__ import annotations

import json
import time
from typing import Any, Sequence
from urllib.parse import urlparse, urlunparse

import httpx

from planforge.messages import Message
from planforge.models.base import BaseChatModel
from planforge.util.logging import get_logger

logger = get_logger(__name__)


class OpenAICompatError(RuntimeError):
    """Raised when the OpenAI-compatible backend returns an error."""


class OpenAICompatChatModel(BaseChatModel):
    """HTTP client for OpenAI-compatible chat/completions."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 30,
        max_response_bytes: int = 2_000_000,
        extra_headers: dict[str, str] | None = None,
        context_window: int = 4096,
        token_char_ratio: int = 4,
        force_chatcompletions_path: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        normalized = base_url.strip()
        if not normalized.startswith(("http://", "https://")):
            normalized = f"http://{normalized}"
        self.base_url = normalized.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_response_bytes = max_response_bytes
        self.extra_headers = extra_headers or {}
        self.context_window = context_window
        self.token_char_ratio = token_char_ratio
        self.force_chatcompletions_path = force_chatcompletions_path
        self.transport = transport

    def _request_payload(
        self,
        messages: Sequence[Message],
        max_tokens: int | None,
        temperature: float | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_openai() for message in messages],
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    def _build_url(self) -> str:
        parsed = urlparse(self.base_url)
        if self.force_chatcompletions_path:
            forced_path = self.force_chatcompletions_path
            if not forced_path.startswith("/"):
                forced_path = f"/{forced_path}"
            return urlunparse(parsed._replace(path=forced_path, params="", query="", fragment=""))
        path = parsed.path or ""
        if path in {"", "/"}:
            base_path = "/v1"
        else:
            base_path = path.rstrip("/")
            segments = [segment for segment in base_path.split("/") if segment]
            if "v1" not in segments:
                base_path = f"{base_path}/v1"
        if base_path.endswith("/chat/completions"):
            final_path = base_path
        else:
            final_path = f"{base_path}/chat/completions"
        return urlunparse(parsed._replace(path=final_path, params="", query="", fragment=""))

    def chat(
        self,
        messages: Sequence[Message],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        url = self._build_url()
        headers = {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}
        payload = self._request_payload(messages, max_tokens, temperature)
        timeout = httpx.Timeout(self.timeout_seconds)

        last_error: Exception | None = None
        for attempt in range(3):
            try:
                with httpx.Client(timeout=timeout, transport=self.transport) as client:
                    response = client.post(url, headers=headers, json=payload)
                if response.status_code in {429} or response.status_code >= 500:
                    raise OpenAICompatError(
                        f"Retryable error {response.status_code}: {response.text[:200]}"
                    )
                response.raise_for_status()
                if len(response.content) > self.max_response_bytes:
                    raise OpenAICompatError("Response too large")
                try:
                    data = response.json()
                except json.JSONDecodeError as exc:
                    raise OpenAICompatError("Malformed JSON response") from exc
                choice = data.get("choices", [{}])[0]
                content = choice.get("message", {}).get("content")
                return content if isinstance(content, str) else ""
            except (httpx.HTTPError, OpenAICompatError) as exc:
                last_error = exc
                logger.warning("Chat request attempt %s failed: %s", attempt + 1, exc)
                if attempt == 2:
                    break
                time.sleep(2**attempt)
        raise OpenAICompatError(f"OpenAI-compatible request failed: {last_error}")
