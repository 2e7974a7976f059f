"""Logging helpers with secret redaction."""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable

_REDACTIONS = [
    re.compile(r"Bearer\s+[A-Za-z0-9\-_.]+"),
    re.compile(r"sk-[A-Za-z0-9]+"),
]
_CLIP_MARKER = "...[clipped]"


def redact(
    text: str,
    extra_secrets: Iterable[str] | None = None,
    max_chars: int | None = None,
) -> str:
    """Redact known secret patterns and explicit secrets from text.

    When ``max_chars`` is given the result is clipped so that long model
    replies and tool outputs do not flood the log.
    """
    redacted = text
    for pattern in _REDACTIONS:
        redacted = pattern.sub("Bearer [REDACTED]", redacted)
    if extra_secrets:
        for secret in extra_secrets:
            if secret:
                redacted = redacted.replace(secret, "[REDACTED]")
    if max_chars is not None and len(redacted) > max_chars:
        redacted = redacted[:max_chars] + _CLIP_MARKER
    return redacted


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(os.environ.get("PLANFORGE_LOG_LEVEL", "INFO").upper())
    return logger
