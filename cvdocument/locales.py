"""
Locale vocabularies for the heuristic CV parser and the date interpreter.

Each supported CV language is described by a LocaleVocabulary: a mapping
from parsing concepts (section headers, month names, "present" markers,
role-title keywords, title/company connectors, language-level keywords)
to the words and patterns that express them in that language.

The parser and date helpers consult every registered locale at once, so a
CV mixing English headers with Danish dates still parses. New locales are
added with register_locale().
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

# Section concepts recognised by the text parser. "other" marks sections whose
# content is not collected (projects, references, ...) but which still close
# the current section.
SECTION_CONCEPTS: Tuple[str, ...] = (
    "experience",
    "education",
    "skills",
    "languages",
    "summary",
    "other",
)

DEFAULT_LANGUAGE = "da"


@dataclass(frozen=True)
class LocaleVocabulary:
    """Words and patterns for one CV language."""
    code: str
    # concept -> full-line regular expressions (matched case-insensitively)
    section_headers: Dict[str, Tuple[str, ...]]
    # lowercase month name or abbreviation -> month number (1-12)
    months: Dict[str, int]
    # display names, index 0 = January
    month_display: Tuple[str, ...]
    present_markers: Tuple[str, ...]
    role_title_patterns: Tuple[str, ...]
    company_connectors: Tuple[str, ...]
    level_keywords: Tuple[str, ...]
    present_label: str
    # frequent short words used for language detection
    common_words: Tuple[str, ...] = field(default_factory=tuple)


ENGLISH = LocaleVocabulary(
    code="en",
    section_headers={
        "experience": (
            r"(?:work|professional|relevant)?\s*experience",
            r"employment(?:\s*history)?",
            r"work\s*history",
            r"career(?:\s*history)?",
        ),
        "education": (
            r"education(?:\s*(?:&|and)\s*training)?",
            r"academic(?:\s*background)?",
            r"qualifications",
        ),
        "skills": (
            r"(?:technical|core|key)?\s*skills",
            r"(?:core\s*)?competencies",
            r"tools?\s*(?:&|and)?\s*technologies",
            r"key\s*qualifications",
        ),
        "languages": (
            r"languages?",
            r"language\s*skills",
        ),
        "summary": (
            r"(?:professional\s*)?summary",
            r"(?:professional\s*)?profile",
            r"about\s*me",
            r"(?:career\s*)?objective",
        ),
        "other": (
            r"certifi(?:cations?|cates)",
            r"projects?",
            r"publications",
            r"references?",
            r"interests",
            r"hobbies",
        ),
    },
    months={
        "january": 1, "jan": 1,
        "february": 2, "feb": 2,
        "march": 3, "mar": 3,
        "april": 4, "apr": 4,
        "may": 5,
        "june": 6, "jun": 6,
        "july": 7, "jul": 7,
        "august": 8, "aug": 8,
        "september": 9, "sep": 9, "sept": 9,
        "october": 10, "oct": 10,
        "november": 11, "nov": 11,
        "december": 12, "dec": 12,
    },
    month_display=(
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    present_markers=(
        "present", "current", "currently", "now", "ongoing", "today", "to date",
    ),
    role_title_patterns=(
        r"\b(?:manager|director|lead|senior|junior|head|chief|engineer|developer|"
        r"analyst|consultant|specialist|coordinator|administrator|assistant|"
        r"executive|officer|architect|designer|intern|founder|supervisor|advisor)\b",
    ),
    company_connectors=("at",),
    level_keywords=(
        "native speaker", "mother tongue", "working knowledge", "native",
        "bilingual", "fluent", "proficient", "advanced", "intermediate",
        "conversational", "basic", "beginner", "elementary",
        "A1", "A2", "B1", "B2", "C1", "C2",
    ),
    present_label="Present",
    common_words=("and", "the", "of", "with", "to", "in", "for", "at"),
)

DANISH = LocaleVocabulary(
    code="da",
    section_headers={
        "experience": (
            r"erhvervserfaring",
            r"arbejdserfaring",
            r"ansættelser",
            r"erfaring",
            r"beskæftigelse",
        ),
        "education": (
            r"uddannelser?(?:\s*og\s*kurser)?",
            r"kurser",
        ),
        "skills": (
            r"(?:faglige\s*|it-?\s*)?kompetencer",
            r"kvalifikationer",
        ),
        "languages": (
            r"sprog",
            r"sprogkundskaber",
        ),
        "summary": (
            r"(?:personlig\s*)?profil",
            r"om\s*mig",
            r"resumé",
        ),
        "other": (
            r"certifi(?:kater|ceringer)",
            r"projekter",
            r"publikationer",
            r"referencer",
            r"(?:fritids)?interesser",
        ),
    },
    months={
        "januar": 1, "jan": 1,
        "februar": 2, "feb": 2,
        "marts": 3, "mar": 3,
        "april": 4, "apr": 4,
        "maj": 5,
        "juni": 6, "jun": 6,
        "juli": 7, "jul": 7,
        "august": 8, "aug": 8,
        "september": 9, "sep": 9, "sept": 9,
        "oktober": 10, "okt": 10,
        "november": 11, "nov": 11,
        "december": 12, "dec": 12,
    },
    month_display=(
        "Januar", "Februar", "Marts", "April", "Maj", "Juni",
        "Juli", "August", "September", "Oktober", "November", "December",
    ),
    present_markers=(
        "nu", "nuværende", "i dag", "nutid", "d.d.", "dags dato",
    ),
    role_title_patterns=(
        # Danish titles are usually compounds ("projektleder"), so allow a prefix
        r"\w*(?:leder|chef|konsulent|specialist|medarbejder|koordinator|rådgiver|"
        r"udvikler|ingeniør|direktør|assistent|praktikant)\b",
        r"\b(?:partner|ejer|stifter)\b",
    ),
    company_connectors=("hos", "ved"),
    level_keywords=(
        "modersmål", "flydende", "avanceret", "mellem", "grundlæggende",
    ),
    present_label="Nu",
    common_words=("og", "af", "på", "med", "til", "jeg", "hos", "som"),
)


# Global locale registry
_LOCALE_REGISTRY: Dict[str, LocaleVocabulary] = {}


def register_locale(locale: LocaleVocabulary) -> None:
    """
    Register (or replace) a locale vocabulary.

    Args:
        locale: The vocabulary to register under locale.code
    """
    _LOCALE_REGISTRY[locale.code] = locale


def unregister_locale(code: str) -> None:
    _LOCALE_REGISTRY.pop(code, None)


def get_locale(code: Optional[str]) -> LocaleVocabulary:
    """Return the vocabulary for a language code, falling back to the default."""
    if code and code in _LOCALE_REGISTRY:
        return _LOCALE_REGISTRY[code]
    return _LOCALE_REGISTRY.get(DEFAULT_LANGUAGE) or next(iter(_LOCALE_REGISTRY.values()))


def iter_locales() -> Iterator[LocaleVocabulary]:
    return iter(list(_LOCALE_REGISTRY.values()))


def list_locales() -> List[str]:
    return sorted(_LOCALE_REGISTRY)


# ------------------------- Combined lookups -------------------------

_HEADER_TRIM_RE = re.compile(r"^[\s#*=_\-]+|[\s:.;#*=_\-]+$")


def normalize_header_line(line: str) -> str:
    """Strip decoration around a potential section header ("== EXPERIENCE: ==")."""
    return _HEADER_TRIM_RE.sub("", line or "")


def section_for_header(line: str) -> Optional[str]:
    """
    Return the section concept a line introduces, or None.

    The whole (trimmed) line must match a header pattern; a sentence that
    merely mentions "experience" is not a header.
    """
    candidate = normalize_header_line(line)
    if not candidate or len(candidate) > 40:
        return None
    for locale in iter_locales():
        for concept, patterns in locale.section_headers.items():
            for pattern in patterns:
                if re.fullmatch(pattern, candidate, re.IGNORECASE):
                    return concept
    return None


def month_number(name: str) -> Optional[int]:
    """Look up a month name or abbreviation in every locale."""
    key = (name or "").strip().lower().rstrip(".,")
    for locale in iter_locales():
        if key in locale.months:
            return locale.months[key]
    return None


def month_name_pattern() -> str:
    """Regex alternation of every known month name, longest first."""
    names = set()
    for locale in iter_locales():
        names.update(locale.months)
    return "|".join(sorted((re.escape(n) for n in names), key=len, reverse=True))


def present_marker_pattern() -> str:
    """Regex alternation of every known "present" marker, longest first."""
    markers = set()
    for locale in iter_locales():
        markers.update(locale.present_markers)
    return "|".join(sorted((re.escape(m) for m in markers), key=len, reverse=True))


def contains_present_marker(text: Optional[str]) -> bool:
    """True if the text contains a "present/current/ongoing" marker as a word."""
    if not text:
        return False
    pattern = rf"(?<!\w)(?:{present_marker_pattern()})(?!\w)"
    return re.search(pattern, text, re.IGNORECASE) is not None


def looks_like_role_title(line: str) -> bool:
    for locale in iter_locales():
        for pattern in locale.role_title_patterns:
            if re.search(pattern, line, re.IGNORECASE):
                return True
    return False


def company_connectors() -> Tuple[str, ...]:
    out: List[str] = []
    for locale in iter_locales():
        out.extend(c for c in locale.company_connectors if c not in out)
    return tuple(out)


def level_keywords() -> Tuple[str, ...]:
    """Every language-level keyword, longest first so phrases win over words."""
    out: List[str] = []
    for locale in iter_locales():
        out.extend(k for k in locale.level_keywords if k not in out)
    return tuple(sorted(out, key=len, reverse=True))


_WORD_RE = re.compile(r"[^\W\d_]+", re.UNICODE)


def detect_language(text: Optional[str], default: str = DEFAULT_LANGUAGE) -> str:
    """
    Guess the CV language from its words.

    Scores each locale by section headers, month names and common short
    words found in the text; ties and empty input yield the default.
    """
    if not text or not text.strip():
        return default

    words = [w.lower() for w in _WORD_RE.findall(text)]
    scores: Dict[str, int] = {}
    for locale in iter_locales():
        vocabulary = set(locale.common_words) | {m for m in locale.months if len(m) > 3}
        score = sum(1 for w in words if w in vocabulary)
        for line in text.splitlines():
            candidate = normalize_header_line(line)
            for patterns in locale.section_headers.values():
                if any(re.fullmatch(p, candidate, re.IGNORECASE) for p in patterns):
                    score += 3
                    break
        scores[locale.code] = score

    if not scores:
        return default
    best = max(scores.values())
    winners = [code for code, score in scores.items() if score == best]
    if best == 0 or len(winners) > 1:
        return default if default in scores else winners[0]
    return winners[0]


register_locale(ENGLISH)
register_locale(DANISH)


__all__ = [
    "DANISH",
    "DEFAULT_LANGUAGE",
    "ENGLISH",
    "LocaleVocabulary",
    "SECTION_CONCEPTS",
    "company_connectors",
    "contains_present_marker",
    "detect_language",
    "get_locale",
    "iter_locales",
    "level_keywords",
    "list_locales",
    "looks_like_role_title",
    "month_name_pattern",
    "month_number",
    "present_marker_pattern",
    "register_locale",
    "section_for_header",
    "unregister_locale",
]
