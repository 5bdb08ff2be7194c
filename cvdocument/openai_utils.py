"""
Shared OpenAI helper utilities for the structuring and text-assist adapters.
"""

from __future__ import annotations

import json
import os
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import openai

from .logging_utils import LOG

T = TypeVar("T")

DEFAULT_ASSIST_MODEL = "gpt-4o-mini"
DEFAULT_STRUCTURE_MODEL = "gpt-4o"


def resolve_model(explicit: Optional[str], default: str) -> str:
    """--openai-model wins, then OPENAI_MODEL, then the adapter default."""
    return explicit or os.environ.get("OPENAI_MODEL") or default


def strip_markdown_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json") :]
    elif text.startswith("```"):
        text = text[len("```") :]
    if text.endswith("```"):
        text = text[: -len("```")]
    return text.strip()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Robustly extract a JSON object from model output.

    Handles:
    - pure JSON
    - fenced code blocks
    - extra commentary around JSON
    """
    if not isinstance(text, str):
        return None

    cleaned = strip_markdown_fences(text)

    try:
        obj = json.loads(cleaned)
        return obj if isinstance(obj, dict) else None
    except ValueError:
        pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None

    candidate = cleaned[start : end + 1]
    try:
        obj = json.loads(candidate)
        return obj if isinstance(obj, dict) else None
    except ValueError:
        return None


def completion_content(completion: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return (content, finish_reason) of the first choice, tolerating odd shapes."""
    try:
        if not completion.choices:
            return None, None
        choice = completion.choices[0]
        return choice.message.content, getattr(choice, "finish_reason", None)
    except (AttributeError, IndexError, TypeError):
        return None, None


# Retried besides 5xx.
_RETRY_STATUSES = frozenset({408, 409, 429})
_TRANSPORT_HINTS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection aborted",
    "connection refused",
    "remote disconnected",
    "temporarily unavailable",
    "ssl",
)
_MIN_DELAY_S = 0.25


@dataclass(frozen=True)
class RetryConfig:
    # Counts the first request too.
    max_attempts: int = 8
    base_delay_s: float = 0.75
    max_delay_s: float = 20.0
    # Full-jitter backoff unless set.
    deterministic: bool = False


def http_status(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an OpenAI SDK error (or a look-alike), if any."""
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    status = getattr(getattr(exc, "response", None), "status_code", None)
    return status if isinstance(status, int) else None


def retry_after_seconds(exc: BaseException) -> Optional[float]:
    """Seconds the service asked us to wait, from the Retry-After header."""
    headers = getattr(exc, "headers", None)
    if headers is None:
        headers = getattr(getattr(exc, "response", None), "headers", None)
    try:
        value = headers.get("retry-after") if headers else None
        return float(value) if value is not None else None
    except (AttributeError, TypeError, ValueError):
        return None


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, openai.APIConnectionError):
        return True
    status = http_status(exc)
    if status is not None:
        return status in _RETRY_STATUSES or status >= 500
    message = str(exc).lower()
    return any(hint in message for hint in _TRANSPORT_HINTS)


def backoff_delay(config: RetryConfig, failures: int, retry_after: Optional[float] = None) -> float:
    """
    Seconds to wait after the given number of consecutive failures.

    A positive Retry-After wins, capped at max_delay_s. Otherwise the delay
    doubles per failure from base_delay_s up to the cap and is drawn from
    [0, cap) unless the config is deterministic. Never below a quarter second.
    """
    if retry_after is not None and retry_after > 0:
        return min(config.max_delay_s, retry_after)
    ceiling = min(config.max_delay_s, config.base_delay_s * 2 ** (failures - 1))
    delay = ceiling if config.deterministic else random.random() * ceiling
    return max(_MIN_DELAY_S, delay)


class CompletionRetry:
    """Runs one completion request, repeating it on rate limits and outages."""

    def __init__(self, *, retry: RetryConfig, sleep: Callable[[float], None]):
        self._retry = retry
        self._sleep = sleep

    def run(self, request: Callable[[], T], *, purpose: str) -> T:
        attempts = max(1, self._retry.max_attempts)
        failures = 0
        while True:
            try:
                return request()
            except Exception as e:
                if not is_retryable(e):
                    raise RuntimeError(f"{purpose} was rejected by OpenAI: {e}") from e
                failures += 1
                status = http_status(e)
                if failures >= attempts:
                    detail = f" (HTTP {status})" if status else ""
                    raise RuntimeError(f"{purpose} kept failing after {attempts} attempts{detail}: {e}") from e
                delay = backoff_delay(self._retry, failures, retry_after_seconds(e))
                LOG.warning(
                    "%s hit %s, retrying in %.2fs (%d/%d)",
                    purpose,
                    status or type(e).__name__,
                    delay,
                    failures,
                    attempts,
                )
                self._sleep(delay)
