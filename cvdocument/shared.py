"""
Shared models and text utilities.

Defines common data structures (verification results), identifier and
timestamp helpers, text normalization helpers and prompt loading used
across parsing, normalization, editing and rendering.
"""

from __future__ import annotations

import hashlib
import re
import uuid

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional

from .logging_utils import LOG

# ------------------------- Models -------------------------
@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    errors: List[str]
    warnings: List[str]


Clock = Callable[[], datetime]

# ------------------------- Identifiers / timestamps -------------------------

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def to_iso(moment: datetime) -> str:
    """Render a datetime as the ISO-8601 UTC string stored on documents."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"

def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp; returns None when unreadable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment

def generate_id() -> str:
    """Random identifier for items created interactively."""
    return uuid.uuid4().hex[:16]

def stable_id(prefix: str, *parts: Any) -> str:
    """
    Deterministic identifier derived from its inputs.

    Returns:
        "<prefix>-<12 hex chars>"
    """
    raw = "\x1f".join(str(p) for p in parts)
    digest = hashlib.md5(raw.encode("utf-8")).hexdigest()[:12]
    return f"{prefix}-{digest}"

# ------------------------- Text helpers -------------------------

_WS_RE = re.compile(r"\s+")

def _strip_invalid_xml_1_0_chars(s: str) -> str:
    """
    Remove characters invalid in XML 1.0.
    Valid:
      #x9 | #xA | #xD |
      [#x20-#xD7FF] |
      [#xE000-#xFFFD] |
      [#x10000-#x10FFFF]
    """
    out: List[str] = []
    for ch in s:
        cp = ord(ch)
        if (
            cp == 0x9
            or cp == 0xA
            or cp == 0xD
            or (0x20 <= cp <= 0xD7FF)
            or (0xE000 <= cp <= 0xFFFD)
            or (0x10000 <= cp <= 0x10FFFF)
        ):
            out.append(ch)
    return "".join(out)

def normalize_text_for_processing(s: str) -> str:
    """
    Normalize what we consider "text":
    - convert NBSP to normal space
    - replace soft hyphen with real hyphen
    - normalize newlines
    - strip invalid XML chars
    """
    s = s.replace("\u00A0", " ")
    s = s.replace("\u00AD", "-")  # preserve "high-quality"
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    s = _strip_invalid_xml_1_0_chars(s)
    return s

def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace; None and non-strings become an empty string."""
    if not isinstance(text, str):
        return ""
    text = normalize_text_for_processing(text)
    text = _WS_RE.sub(" ", text)
    return text.strip()

def optional_text(text: Optional[str]) -> Optional[str]:
    """Like clean_text, but empty results become None."""
    cleaned = clean_text(text)
    return cleaned or None

def sanitize_for_xml_in_obj(obj: Any) -> Any:
    """
    Sanitize strings for insertion into docxtpl (XML-safe):
    - normalize NBSP
    - strip invalid XML 1.0 chars
    """
    def _sanitize(x: Any) -> Any:
        if isinstance(x, str):
            return normalize_text_for_processing(x)
        if isinstance(x, (list, tuple)):
            return [_sanitize(i) for i in x]
        if isinstance(x, dict):
            return {k: _sanitize(v) for k, v in x.items()}
        return x
    return _sanitize(obj)

# ---------------------- Prompt Loading ----------------------

# Paths to prompts directories
_EXTRACTOR_PROMPTS_DIR = Path(__file__).parent / "extractors" / "prompts"
_ASSIST_PROMPTS_DIR = Path(__file__).parent / "assist" / "prompts"


def load_prompt(prompt_name: str) -> Optional[str]:
    """
    Load a prompt template from a Markdown file.

    Searches in this order:
    1. Extractor prompts folder: cvdocument/extractors/prompts/{prompt_name}.md
    2. Assist prompts folder: cvdocument/assist/prompts/{prompt_name}.md

    Args:
        prompt_name: Name of the prompt file (without .md extension)

    Returns:
        The prompt text, or None if the file doesn't exist or can't be read

    Example:
        >>> system = load_prompt("cv_structure_system")
        >>> if system:
        ...     print(system[:50])
    """
    extractor_prompt_path = _EXTRACTOR_PROMPTS_DIR / f"{prompt_name}.md"
    if extractor_prompt_path.exists():
        try:
            return extractor_prompt_path.read_text(encoding="utf-8")
        except OSError as e:
            LOG.error("Failed to read prompt %s: %s", extractor_prompt_path, e)
            return None

    assist_prompt_path = _ASSIST_PROMPTS_DIR / f"{prompt_name}.md"
    try:
        return assist_prompt_path.read_text(encoding="utf-8")
    except OSError as e:
        LOG.error("Failed to read prompt %s: %s", assist_prompt_path, e)
        return None


def format_prompt(prompt_name: str, **kwargs) -> Optional[str]:
    """
    Load a prompt template and format it with the provided variables.

    Returns:
        The formatted prompt text, or None if the file doesn't exist or can't be read
    """
    template = load_prompt(prompt_name)
    if template is None:
        return None

    try:
        return template.format(**kwargs)
    except (KeyError, IndexError, ValueError) as e:
        LOG.error("Failed to format prompt %s: %s", prompt_name, e)
        return None
