"""
Date interpretation and the reverse-chronological experience order.

Experience dates are free-form display strings ("Jan 2020", "Marts 2019",
"2018", "03/2021"). parse_date() turns them into a comparable order value;
sort_experience() applies the ordering rule every document must satisfy:

1. Ongoing roles (no end date, or a "present" marker) come first; several
   ongoing roles are ordered by start date, newest first.
2. Finished roles follow, newest end date first, ties broken by start date.
3. Roles whose dates cannot be read sort last.

sort_experience() must run after parsing, after normalization, after every
edit and before any export.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Iterable, NamedTuple, Optional, Tuple, TypeVar

from .locales import contains_present_marker, get_locale, month_name_pattern, month_number
from .logging_utils import LOG

T = TypeVar("T")

_DASHES = {"-", "–", "—"}
_YEAR_RE = re.compile(r"(?<!\d)(\d{4})(?!\d)")
_NUMERIC_MONTH_YEAR_RE = re.compile(r"^(\d{1,2})\s*[/.\-]\s*(\d{4})$")
_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_BARE_YEAR_RE = re.compile(r"^\d{4}$")
_COMMA_RE = re.compile(r",\s*")
_WS_RE = re.compile(r"\s+")
_LETTER_RE = re.compile(r"[^\W\d_]", re.UNICODE)


class DateOrder(NamedTuple):
    """Comparable interpretation of a display date."""
    order: float
    is_ongoing: bool


ONGOING = DateOrder(math.inf, True)
UNDATED = DateOrder(-math.inf, False)


def _timestamp(year: int, month: int = 1) -> float:
    return datetime(year, month, 1, tzinfo=timezone.utc).timestamp()


def _month_year_match(text: str) -> Optional[Tuple[int, int]]:
    pattern = rf"^({month_name_pattern()})\.?,?\s*(\d{{4}})$"
    m = re.match(pattern, text, re.IGNORECASE)
    if not m:
        return None
    month = month_number(m.group(1))
    if month is None:
        return None
    return int(m.group(2)), month


def parse_date(value: Optional[str]) -> DateOrder:
    """
    Interpret a display date.

    Never raises: unreadable input yields UNDATED (order = -inf).
    """
    if not isinstance(value, str) or not value.strip():
        return ONGOING

    text = _WS_RE.sub(" ", value.strip())
    if text in _DASHES:
        return ONGOING
    if contains_present_marker(text) and not _YEAR_RE.search(text):
        return ONGOING

    try:
        month_year = _month_year_match(text)
        if month_year:
            year, month = month_year
            return DateOrder(_timestamp(year, month), False)

        m = _NUMERIC_MONTH_YEAR_RE.match(text)
        if m and 1 <= int(m.group(1)) <= 12:
            return DateOrder(_timestamp(int(m.group(2)), int(m.group(1))), False)

        m = _YEAR_MONTH_RE.match(text)
        if m and 1 <= int(m.group(2)) <= 12:
            return DateOrder(_timestamp(int(m.group(1)), int(m.group(2))), False)

        if _BARE_YEAR_RE.match(text):
            return DateOrder(_timestamp(int(text)), False)

        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return DateOrder(parsed.timestamp(), False)

        m = _YEAR_RE.search(text)
        if m:
            return DateOrder(_timestamp(int(m.group(1))), False)
    except (ValueError, OverflowError) as e:
        LOG.debug("Unreadable date %r: %s", value, e)

    return UNDATED


def _desc(a: float, b: float) -> int:
    """Comparator result placing the larger value first."""
    if a > b:
        return -1
    if a < b:
        return 1
    return 0


def compare_experience(a: Any, b: Any) -> int:
    """Compare two objects with start_date/end_date attributes."""
    a_end = parse_date(a.end_date)
    b_end = parse_date(b.end_date)
    a_start = parse_date(a.start_date)
    b_start = parse_date(b.start_date)

    if a_end.is_ongoing and b_end.is_ongoing:
        return _desc(a_start.order, b_start.order)
    if a_end.is_ongoing:
        return -1
    if b_end.is_ongoing:
        return 1
    by_end = _desc(a_end.order, b_end.order)
    if by_end:
        return by_end
    return _desc(a_start.order, b_start.order)


def sort_experience(blocks: Iterable[T]) -> Tuple[T, ...]:
    """Stable reverse-chronological sort; returns a new tuple."""
    return tuple(sorted(blocks, key=cmp_to_key(compare_experience)))


def is_sorted_experience(blocks: Iterable[Any]) -> bool:
    items = list(blocks)
    return all(compare_experience(items[i], items[i + 1]) <= 0 for i in range(len(items) - 1))


def format_date_for_display(value: Optional[str], language: Optional[str] = None) -> str:
    """
    Render a source date as display text.

    - "YYYY-MM" becomes "<Month> YYYY" in the document language
    - text containing letters keeps its words; commas and spacing are tidied
    - a bare year is returned unchanged
    """
    if not isinstance(value, str):
        return ""
    text = value.strip()
    if not text:
        return ""

    if _LETTER_RE.search(text):
        return _WS_RE.sub(" ", _COMMA_RE.sub(" ", text)).strip()

    m = re.match(r"^(\d{4})-(\d{2})$", text)
    if m:
        month = int(m.group(2))
        if 1 <= month <= 12:
            locale = get_locale(language)
            return f"{locale.month_display[month - 1]} {m.group(1)}"
        return text

    if _BARE_YEAR_RE.match(text):
        return text

    return _WS_RE.sub(" ", _COMMA_RE.sub(" ", text)).strip()


def normalize_end_date(value: Optional[str], language: Optional[str] = None) -> Optional[str]:
    """
    Display form of an end date; None means the role is ongoing.

    "Present", "Nu", "i dag" and the other markers never survive as text.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    if value.strip() in _DASHES:
        return None
    if contains_present_marker(value):
        return None
    return format_date_for_display(value, language) or None


__all__ = [
    "DateOrder",
    "ONGOING",
    "UNDATED",
    "compare_experience",
    "format_date_for_display",
    "is_sorted_experience",
    "normalize_end_date",
    "parse_date",
    "sort_experience",
]
