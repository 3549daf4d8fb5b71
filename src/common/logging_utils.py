"""Logging helpers shared by the CLI, HTTP layers and registry clients.

Everything here is plain stdlib ``logging``. Structured fields travel in the
``extra=`` mapping so handlers and tests can inspect them without parsing the
message text.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Dict, Optional

from constants import Constants

_SECRET_QUERY_RE = re.compile(r"(?i)([?&](?:key|api_key|apikey|token|access_token)=)[^&#]+")
_SECRET_TEXT_RE = re.compile(r"(?i)(x-api-key[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    Level precedence: explicit argument, then MODDEPS_LOG_LEVEL, then INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=Constants.LOG_FORMAT, level=level_value)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted for this logger."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` payload, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def redact(text: str) -> str:
    """Mask API keys that leak into URLs or response bodies."""
    if not text:
        return text
    masked = _SECRET_QUERY_RE.sub(r"\1[REDACTED]", text)
    return _SECRET_TEXT_RE.sub(r"\1[REDACTED]", masked)


def safe_url(url: str) -> str:
    """URL suitable for logs."""
    return redact(url)


def shorten(text: str, max_chars: int = Constants.ERROR_BODY_MAX_CHARS) -> str:
    """Truncate ``text`` to ``max_chars`` characters, marking the cut with '...'."""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}..."


class Timer:
    """Context manager measuring wall time in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
