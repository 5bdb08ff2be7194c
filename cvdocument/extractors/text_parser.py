"""
Heuristic parser for free CV text.

Turns loosely structured CV text (pasted, or read out of an upload) into
ParsedCVData:
- summary / profile text
- experience entries (title, company, location, dates, bullets, description)
- education, skills and languages

The scan is section-oriented: header lines switch the current section and
each section has its own small line parser. Vocabularies (headers, months,
present markers, role keywords, connectors, level keywords) come from the
locale registry, so the algorithm itself is language-agnostic.

Nothing is guessed: a line that cannot be classified is dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Pattern, Tuple

from ..locales import (
    company_connectors,
    level_keywords,
    looks_like_role_title,
    month_name_pattern,
    present_marker_pattern,
    section_for_header,
)
from ..logging_utils import LOG
from ..shared import clean_text, normalize_text_for_processing
from ..sources import ParsedCVData, ParsedEducation, ParsedExperience, ParsedLanguage

# ------------------------- Patterns -------------------------

BULLET_PATTERN = re.compile(r"^\s*(?:[•●○◦▪▸►→]\s*|[-*]\s+|\d{1,2}[.)]\s+)")

_SENTENCE_END = (".", "!", "?")
_ENTRY_MAX_LEN = 100
_DATED_ENTRY_MAX_LEN = 120
_MIN_DESCRIPTION_LEN = 10
_MIN_SUMMARY_LEN = 20
_MAX_SKILL_LEN = 40

_FIELD_SPLIT = re.compile(r"\s*[|,@–—]\s*|\s+-\s+")
_EDUCATION_SPLIT = re.compile(r"\s*[|,;]\s*")
_SKILL_SPLIT = re.compile(r"\s*[,;|·]\s*")
_LANGUAGE_SPLIT = re.compile(r"\s*[,;|]\s*")
_EMPTY_PARENS = re.compile(r"\(\s*\)|\[\s*\]")
_EDGE_CHARS = " \t|,;:@–—-()[]"
_SINGLE_WORD = re.compile(r"^[^\W\d_]+$", re.UNICODE)


class DateRange(NamedTuple):
    start: str
    # None when the range is open ("2020 –")
    end: Optional[str]
    span: Tuple[int, int]


class _Patterns(NamedTuple):
    date_range: Pattern[str]
    year_token: Pattern[str]
    connector: Optional[Pattern[str]]
    level: Optional[Pattern[str]]


def _build_patterns() -> _Patterns:
    months = month_name_pattern()
    present = present_marker_pattern()

    date_token = rf"(?:(?:{months})\.?,?\s*\d{{4}}|\d{{1,2}}\s*[/.]\s*\d{{4}}|\d{{4}}-\d{{2}}|\d{{4}})"
    end_token = rf"(?:{date_token}|{present})"
    separator = r"(?:\s*(?:--|[-–—])\s*|\s+(?:to|til)\s+)"
    date_range = re.compile(
        rf"(?<!\w)(?P<start>{date_token}){separator}(?P<end>{end_token})?(?!\w)",
        re.IGNORECASE,
    )
    year_token = re.compile(
        rf"(?<!\d)\d{{4}}(?:\s*(?:--|[-–—])\s*(?:\d{{4}}|{present}))?(?!\d)",
        re.IGNORECASE,
    )

    connectors = company_connectors()
    connector = (
        re.compile(rf"\s+(?:{'|'.join(re.escape(c) for c in connectors)})\s+", re.IGNORECASE)
        if connectors else None
    )

    keywords = level_keywords()
    level = (
        re.compile(rf"(?<!\w)(?:{'|'.join(re.escape(k) for k in keywords)})(?!\w)", re.IGNORECASE)
        if keywords else None
    )
    return _Patterns(date_range, year_token, connector, level)


# ------------------------- Line helpers -------------------------

def is_bullet_line(line: str) -> bool:
    return bool(BULLET_PATTERN.match(line))


def strip_bullet(line: str) -> str:
    return clean_text(BULLET_PATTERN.sub("", line, count=1))


def _strip_edges(text: str) -> str:
    return _EMPTY_PARENS.sub("", text).strip(_EDGE_CHARS)


def find_date_range(line: str, patterns: Optional[_Patterns] = None) -> Optional[DateRange]:
    """Locate a date range ("Jan 2020 – Present", "2017-2020", "03/2019 - 05/2021")."""
    patterns = patterns or _build_patterns()
    m = patterns.date_range.search(line)
    if not m:
        return None
    end = m.group("end")
    return DateRange(clean_text(m.group("start")), clean_text(end) if end else None, m.span())


def _is_pure_date_range(line: str, patterns: _Patterns) -> Optional[DateRange]:
    found = find_date_range(line, patterns)
    if found is None:
        return None
    remainder = line[: found.span[0]] + line[found.span[1]:]
    return found if not _strip_edges(remainder) else None


def _split_title_company(text: str, patterns: _Patterns) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Return (title, company, location) from an entry line without its dates."""
    parts = [p for p in (_strip_edges(x) for x in _FIELD_SPLIT.split(_strip_edges(text))) if p]
    if not parts:
        return None, None, None

    first, rest = parts[0], parts[1:]
    if patterns.connector is not None:
        pieces = patterns.connector.split(first, maxsplit=1)
        if len(pieces) == 2 and pieces[0].strip() and pieces[1].strip():
            location = rest[0] if rest else None
            return clean_text(pieces[0]), clean_text(pieces[1]), location

    company = rest[0] if rest else None
    location = rest[1] if len(rest) > 1 else None
    return clean_text(first), company, location


# ------------------------- Builders -------------------------

@dataclass
class ExperienceBuilder:
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description_parts: List[str] = field(default_factory=list)
    bullets: List[str] = field(default_factory=list)

    def has_body(self) -> bool:
        return bool(self.bullets or self.description_parts)

    def finalize(self) -> ParsedExperience:
        description = " ".join(self.description_parts).strip()
        return ParsedExperience(
            title=self.title,
            company=self.company,
            location=self.location,
            start_date=self.start_date,
            end_date=self.end_date,
            bullets=self.bullets[:],
            description=description or None,
        )


# ------------------------- Section parsers -------------------------

def _start_entry(line: str, patterns: _Patterns) -> Optional[ExperienceBuilder]:
    """Return a new entry if the line opens one, else None."""
    if is_bullet_line(line):
        return None

    found = find_date_range(line, patterns)
    if found is not None and len(line) <= _DATED_ENTRY_MAX_LEN:
        remainder = line[: found.span[0]] + " " + line[found.span[1]:]
        title, company, location = _split_title_company(remainder, patterns)
        return ExperienceBuilder(
            title=title,
            company=company,
            location=location,
            start_date=found.start,
            end_date=found.end,
        )

    if (
        found is None
        and len(line) < _ENTRY_MAX_LEN
        and not line.endswith(_SENTENCE_END)
        and looks_like_role_title(line)
    ):
        title, company, location = _split_title_company(line, patterns)
        return ExperienceBuilder(title=title, company=company, location=location)

    return None


def _parse_education_line(line: str, patterns: _Patterns) -> Optional[ParsedEducation]:
    text = strip_bullet(line) if is_bullet_line(line) else clean_text(line)
    if not text:
        return None

    year: Optional[str] = None
    m = patterns.year_token.search(text)
    if m:
        year = clean_text(m.group(0))
        text = text[: m.start()] + " " + text[m.end():]

    parts = [p for p in (_strip_edges(x) for x in _EDUCATION_SPLIT.split(_strip_edges(text))) if p]
    degree = parts[0] if parts else None
    institution = parts[1] if len(parts) > 1 else None
    if not (degree or institution or year):
        return None
    return ParsedEducation(degree=degree, institution=institution, year=year)


def _merge_education(items: List[ParsedEducation], entry: ParsedEducation) -> None:
    """
    Fold multi-line education blocks ("MSc", "University", "2015 - 2017")
    into the previous entry when the new line only fills its gaps.
    """
    if items:
        prev = items[-1]
        if entry.year and not entry.degree and not entry.institution and not prev.year:
            prev.year = entry.year
            return
        if (
            entry.degree and not entry.institution and not entry.year
            and prev.degree and not prev.institution and not prev.year
        ):
            prev.institution = entry.degree
            return
    items.append(entry)


def _parse_skill_line(line: str) -> List[str]:
    bullet = is_bullet_line(line)
    text = strip_bullet(line) if bullet else clean_text(line)
    if not text:
        return []
    items = [clean_text(s) for s in _SKILL_SPLIT.split(text)]
    items = [s for s in items if s]
    if len(items) > 1:
        return [s for s in items if len(s) <= _MAX_SKILL_LEN]
    if bullet or len(text) <= _MAX_SKILL_LEN:
        return [text] if not text.endswith(_SENTENCE_END) or bullet else []
    return []


def _parse_language_line(line: str, patterns: _Patterns) -> List[ParsedLanguage]:
    text = strip_bullet(line) if is_bullet_line(line) else clean_text(line)
    out: List[ParsedLanguage] = []
    for chunk in _LANGUAGE_SPLIT.split(text):
        chunk = chunk.strip()
        if not chunk:
            continue
        m = patterns.level.search(chunk) if patterns.level is not None else None
        if m:
            level = m.group(0)
            language = _strip_edges(chunk[: m.start()] + " " + chunk[m.end():])
            language = clean_text(language)
            if language:
                out.append(ParsedLanguage(language=language, level=level))
        elif _SINGLE_WORD.match(chunk):
            out.append(ParsedLanguage(language=chunk))
    return out


# ------------------------- Main entry point -------------------------

def parse_cv_text(cv_text: Optional[str]) -> ParsedCVData:
    """
    Parse raw CV text into ParsedCVData.

    Never raises; malformed input yields an empty (or partial) result.
    """
    if not isinstance(cv_text, str) or not cv_text.strip():
        return ParsedCVData()
    try:
        return _parse(cv_text)
    except Exception as e:
        LOG.warning("CV text parsing failed: %s", e)
        return ParsedCVData()


def _parse(cv_text: str) -> ParsedCVData:
    patterns = _build_patterns()
    result = ParsedCVData()
    summary_parts: List[str] = []

    section: Optional[str] = None
    current: Optional[ExperienceBuilder] = None

    def flush_current() -> None:
        nonlocal current
        if current is not None:
            result.experience.append(current.finalize())
            current = None

    lines = normalize_text_for_processing(cv_text).split("\n")
    i = 0
    while i < len(lines):
        line = clean_text(lines[i])
        i += 1
        if not line:
            continue

        if not is_bullet_line(line):
            concept = section_for_header(line)
            if concept is not None:
                flush_current()
                section = None if concept == "other" else concept
                LOG.debug("Section %r at line %d", section, i)
                continue

        if section == "experience":
            entry = _start_entry(line, patterns)
            if entry is not None:
                flush_current()
                current = entry
                # dates on their own following line
                if current.start_date is None and i < len(lines):
                    follow = _is_pure_date_range(clean_text(lines[i]), patterns)
                    if follow is not None:
                        current.start_date, current.end_date = follow.start, follow.end
                        i += 1
                continue

            if current is None:
                continue
            if is_bullet_line(line):
                bullet = strip_bullet(line)
                if bullet:
                    current.bullets.append(bullet)
            elif len(line) > _MIN_DESCRIPTION_LEN:
                current.description_parts.append(line)

        elif section == "education":
            entry_edu = _parse_education_line(line, patterns)
            if entry_edu is not None:
                _merge_education(result.education, entry_edu)

        elif section == "skills":
            for skill in _parse_skill_line(line):
                if skill not in result.skills:
                    result.skills.append(skill)

        elif section == "languages":
            result.languages.extend(_parse_language_line(line, patterns))

        elif section == "summary":
            if not is_bullet_line(line):
                summary_parts.append(line)

    flush_current()

    summary = " ".join(summary_parts).strip()
    if len(summary) > _MIN_SUMMARY_LEN:
        result.summary = summary

    LOG.debug(
        "Parsed CV text: %d experience, %d education, %d skills, %d languages",
        len(result.experience), len(result.education), len(result.skills), len(result.languages),
    )
    return result


__all__ = [
    "DateRange",
    "ExperienceBuilder",
    "find_date_range",
    "is_bullet_line",
    "parse_cv_text",
    "strip_bullet",
]
