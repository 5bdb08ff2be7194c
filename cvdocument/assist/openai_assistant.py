"""
OpenAI-based text assistant.

Each assist kind has a system and a user prompt template
(assist/prompts/assist_<kind>_system.md and ..._user.md). The prompts
forbid new facts; the answer is returned as-is with a localized rationale.
"""

from __future__ import annotations

import os
import time
from dataclasses import replace
from typing import Callable, Dict, Optional

from openai import OpenAI

from ..logging_utils import LOG
from ..openai_utils import DEFAULT_ASSIST_MODEL, CompletionRetry, RetryConfig, completion_content, resolve_model
from ..shared import format_prompt
from ..translations import t
from .base import AssistKind, AssistRequest, AssistResponse, TextAssistant


def _prompt_stem(kind: AssistKind) -> str:
    return "assist_" + kind.value.replace("-", "_")


def _validate(request: AssistRequest) -> None:
    kind = request.kind
    if kind == AssistKind.GENERATE_MILESTONES:
        if not any(b.strip() for b in request.bullets):
            raise ValueError(f"'{kind.value}' requires at least one bullet")
        return
    if kind == AssistKind.GENERATE_INTRO_FROM_EXPERIENCE:
        if not (request.cv_context or "").strip():
            raise ValueError(f"'{kind.value}' requires CV context")
        return
    if not (request.content or "").strip():
        raise ValueError(f"'{kind.value}' requires content")


def _job_context_block(request: AssistRequest) -> str:
    job = (request.job_description_context or "").strip()
    if not job:
        return ""
    return "JOB POSTING (for tone only, never for new facts):\n" + job


def _prompt_variables(request: AssistRequest) -> Dict[str, str]:
    return {
        "language_name": t(request.language, "language_name"),
        "content": (request.content or "").strip(),
        "bullets": "\n".join(f"• {b.strip()}" for b in request.bullets if b.strip()),
        "title": (request.title or "").strip(),
        "company": (request.company or "").strip(),
        "cv_context": (request.cv_context or "").strip(),
        "job_context": _job_context_block(request),
    }


class OpenAITextAssistant(TextAssistant):
    """
    Text assistant backed by an OpenAI chat completion.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        retry_config: Optional[RetryConfig] = None,
        request_timeout_s: float = 60.0,
        temperature: float = 0.5,
        max_tokens: int = 500,
        _sleep: Callable[[float], None] = time.sleep,
    ):
        self._model = resolve_model(model, DEFAULT_ASSIST_MODEL)
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._retry = retry_config or RetryConfig()
        self._request_timeout_s = float(request_timeout_s)
        self._temperature = float(temperature)
        self._max_tokens = int(max_tokens)
        self._sleep = _sleep
        self._client: Optional[OpenAI] = None

    @property
    def model(self) -> str:
        return self._model

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise RuntimeError("OPENAI_API_KEY must be set to use OpenAITextAssistant")
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def build_messages(self, request: AssistRequest):
        stem = _prompt_stem(request.kind)
        variables = _prompt_variables(request)
        system_prompt = format_prompt(f"{stem}_system", **variables)
        user_prompt = format_prompt(f"{stem}_user", **variables)
        if not system_prompt or not user_prompt:
            raise RuntimeError(f"Failed to load prompts for '{request.kind.value}'")
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def assist(self, request: AssistRequest) -> AssistResponse:
        request = replace(request, kind=AssistKind(request.kind))
        _validate(request)
        messages = self.build_messages(request)

        client = self.client
        retrier = CompletionRetry(retry=self._retry, sleep=self._sleep)
        completion = retrier.run(
            lambda: client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._request_timeout_s,
            ),
            purpose=f"Assist completion ({request.kind.value})",
        )

        content, finish_reason = completion_content(completion)
        suggestion = (content or "").strip()
        if not suggestion:
            raise RuntimeError(f"Assist completion ({request.kind.value}) returned no content")
        if isinstance(finish_reason, str) and finish_reason != "stop":
            LOG.warning("Assist completion (%s) finished with %s", request.kind.value, finish_reason)

        LOG.info("Assist %s: %d chars suggested", request.kind.value, len(suggestion))
        return AssistResponse(
            suggestion=suggestion,
            rationale=t(request.language, f"rationale_{request.kind.value}"),
        )
