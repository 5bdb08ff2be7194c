"""
OpenAI-based CV structurer.

Fills a fixed JSON template from raw CV text with a JSON-object chat
completion, then cleans the result:
- trims every field and drops empty entries
- repairs values the model cut off mid-word by extending them to the
  complete word found in the source text
- recovers missing language levels written next to the language
  ("Dansk (modersmål)", "English - fluent")
"""

from __future__ import annotations

import json
import os
import re
import time
from typing import Any, Callable, Dict, List, Optional

from openai import OpenAI

from ..logging_utils import LOG
from ..openai_utils import (
    DEFAULT_STRUCTURE_MODEL,
    CompletionRetry,
    RetryConfig,
    completion_content,
    extract_json_object,
    resolve_model,
)
from ..shared import format_prompt, load_prompt
from ..sources import StructuredCVData
from .base import CVStructurer

_WS_RE = re.compile(r"\s+")
_WORD_CHAR_RE = re.compile(r"[\w\-/()]", re.UNICODE)


def _normalize(text: str) -> str:
    return _WS_RE.sub(" ", text).strip().lower()


class TruncationRepairer:
    """
    Extend values that stop mid-word ("Security Mana") to the complete word
    in the source text ("Security Manager"). Values not found in the source
    are returned unchanged; nothing is ever invented.
    """

    def __init__(self, source_text: str):
        self._source = source_text
        self._lines = [_WS_RE.sub(" ", line).strip() for line in source_text.splitlines()]

    def repair(self, value: str, field_name: str = "") -> str:
        if not value or len(value) < 3:
            return value
        needle = _normalize(value)
        for line in self._lines:
            lowered = line.lower()
            idx = lowered.find(needle)
            if idx == -1:
                continue
            end = idx + len(needle)
            if end >= len(line) or not line[end - 1].isalnum() or not _WORD_CHAR_RE.match(line[end]):
                return value
            while end < len(line) and _WORD_CHAR_RE.match(line[end]):
                end += 1
            repaired = line[idx:end].strip()
            if len(repaired) > len(value.strip()):
                LOG.debug("[%s] repaired truncated value %r -> %r", field_name, value, repaired)
                return repaired
            return value
        return value

    def language_level(self, language: str, level: str) -> str:
        if level and len(level) > 2:
            return level
        escaped = re.escape(language)
        patterns = (
            rf"{escaped}\s*\(([^)]+)\)",
            rf"{escaped}\s*[-–:]\s*([^\W\d_]+)",
        )
        for pattern in patterns:
            m = re.search(pattern, self._source, re.IGNORECASE)
            if m and m.group(1).strip():
                LOG.debug("[language %s] recovered level %r", language, m.group(1).strip())
                return m.group(1).strip()
        return level


def _text(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value.strip() if isinstance(value, str) else ""


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def clean_structured_payload(data: Dict[str, Any], source_text: str) -> Dict[str, Any]:
    """Trim, repair and drop empty entries of a raw model payload (camelCase)."""
    repairer = TruncationRepairer(source_text)

    experience: List[Dict[str, Any]] = []
    for idx, exp in enumerate(data.get("experience") or []):
        if not isinstance(exp, dict):
            continue
        title = repairer.repair(_text(exp.get("title")), f"experience[{idx}].title")
        company = repairer.repair(_text(exp.get("company")), f"experience[{idx}].company")
        if not title and not company:
            continue
        experience.append({
            "title": title,
            "company": company,
            "location": _text(exp.get("location")) or None,
            "startDate": _text(exp.get("startDate")),
            "endDate": _text(exp.get("endDate")) or None,
            "keyMilestones": _text(exp.get("keyMilestones")) or None,
            "bullets": _text_list(exp.get("bullets")),
        })

    education: List[Dict[str, Any]] = []
    for idx, edu in enumerate(data.get("education") or []):
        if not isinstance(edu, dict):
            continue
        title = repairer.repair(_text(edu.get("title")), f"education[{idx}].title")
        institution = repairer.repair(_text(edu.get("institution")), f"education[{idx}].institution")
        if not title and not institution:
            continue
        education.append({"title": title, "institution": institution, "year": _text(edu.get("year"))})

    languages: List[Dict[str, Any]] = []
    for lang in data.get("languages") or []:
        if not isinstance(lang, dict):
            continue
        name = _text(lang.get("language"))
        if not name:
            continue
        languages.append({"language": name, "level": repairer.language_level(name, _text(lang.get("level")))})

    return {
        "professionalIntro": _text(data.get("professionalIntro")) or None,
        "experience": experience,
        "education": education,
        "skills": _text_list(data.get("skills")),
        "languages": languages,
    }


class OpenAICVStructurer(CVStructurer):
    """
    Structurer backed by an OpenAI chat completion in JSON-object mode.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        retry_config: Optional[RetryConfig] = None,
        request_timeout_s: float = 120.0,
        max_tokens: int = 16000,
        _sleep: Callable[[float], None] = time.sleep,
    ):
        self._model = resolve_model(model, DEFAULT_STRUCTURE_MODEL)
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._retry = retry_config or RetryConfig()
        self._request_timeout_s = float(request_timeout_s)
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
                raise RuntimeError("OPENAI_API_KEY must be set to use OpenAICVStructurer")
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def structure(self, cv_text: str) -> StructuredCVData:
        if not isinstance(cv_text, str) or not cv_text.strip():
            raise ValueError("cv_text must be a non-empty string")

        system_prompt = load_prompt("cv_structure_system")
        user_prompt = format_prompt("cv_structure_user", cv_text=cv_text)
        if not system_prompt or not user_prompt:
            raise RuntimeError("Failed to load CV structuring prompts")

        LOG.info("Structuring CV text (%d chars) with %s", len(cv_text), self._model)
        client = self.client
        retrier = CompletionRetry(retry=self._retry, sleep=self._sleep)
        completion = retrier.run(
            lambda: client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
                timeout=self._request_timeout_s,
            ),
            purpose="CV structure completion",
        )

        content, finish_reason = completion_content(completion)
        if isinstance(finish_reason, str) and finish_reason not in ("stop", "length"):
            raise RuntimeError(f"CV structure completion not finished ({finish_reason})")
        if finish_reason == "length":
            LOG.warning("CV structure completion hit the token limit; result may be partial")
        if not content:
            raise RuntimeError("CV structure completion returned no content")

        payload = extract_json_object(content)
        if payload is None:
            raise RuntimeError("CV structure completion returned invalid JSON")

        cleaned = clean_structured_payload(payload, cv_text)
        structured = StructuredCVData.from_dict(cleaned) or StructuredCVData()
        LOG.info(
            "Structured CV: intro=%s, %d experience, %d education, %d skills, %d languages",
            bool(structured.professional_intro),
            len(structured.experience),
            len(structured.education),
            len(structured.skills),
            len(structured.languages),
        )
        LOG.debug("Structured payload: %s", json.dumps(cleaned, ensure_ascii=False)[:2000])
        return structured
