"""
Document verification and soft content limits.

verify_document() checks the standing invariants of a CVDocument:
experience sorted newest first, no placeholder text, no empty entries and
unique ids. Errors mean an invariant is broken; warnings are advisory
(content limits) and never block anything.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple

from .dates import is_sorted_experience
from .models import CVDocument
from .shared import VerificationResult
from .translations import t

CONTENT_LIMITS: Dict[str, int] = {
    "intro_lines": 5,
    "milestone_lines": 4,
    "bullets_per_job": 5,
    "bullet_chars": 200,
}

# Whole-field values that only ever appear as filler
_PLACEHOLDER_VALUES = {"n/a", "na", "tbd", "tba", "todo", "xxx", "...", "unknown", "ukendt", "?"}
_PLACEHOLDER_RE = re.compile(r"lorem ipsum|\[(?:insert|your|company|title|date)[^\]]*\]", re.IGNORECASE)


def count_lines(text: Optional[str]) -> int:
    """Number of non-blank lines."""
    if not text:
        return 0
    return sum(1 for line in text.splitlines() if line.strip())


def exceeds_limit(value: int, limit_key: str) -> bool:
    return value > CONTENT_LIMITS[limit_key]


def is_placeholder(text: Optional[str]) -> bool:
    if not text:
        return False
    stripped = text.strip()
    if stripped.lower() in _PLACEHOLDER_VALUES:
        return True
    return bool(_PLACEHOLDER_RE.search(stripped))


def _document_fields(document: CVDocument) -> Iterable[Tuple[str, str]]:
    """(location, text) for every free-text field of the document."""
    yield "intro", document.right_column.professional_intro.content
    for i, block in enumerate(document.right_column.experience):
        where = f"experience[{i}]"
        yield f"{where}.title", block.title
        yield f"{where}.company", block.company
        yield f"{where}.location", block.location or ""
        yield f"{where}.startDate", block.start_date
        yield f"{where}.endDate", block.end_date or ""
        yield f"{where}.keyMilestones", block.key_milestones
        for j, bullet in enumerate(block.bullets):
            yield f"{where}.bullets[{j}]", bullet.content
    for i, edu in enumerate(document.left_column.education):
        yield f"education[{i}].title", edu.title
        yield f"education[{i}].institution", edu.institution
        yield f"education[{i}].year", edu.year
    for i, skill in enumerate(document.left_column.skills):
        yield f"skills[{i}]", skill.name
    for i, lang in enumerate(document.left_column.languages):
        yield f"languages[{i}].language", lang.language
        yield f"languages[{i}].level", lang.level


def _all_ids(document: CVDocument) -> Iterable[str]:
    for block in document.right_column.experience:
        yield block.id
        for bullet in block.bullets:
            yield bullet.id
    left = document.left_column
    for item in (*left.education, *left.skills, *left.languages):
        yield item.id


def content_limit_warnings(document: CVDocument) -> List[str]:
    """Advisory messages for content over the recommended limits, localized."""
    language = document.language
    warns: List[str] = []

    intro_lines = count_lines(document.right_column.professional_intro.content)
    if exceeds_limit(intro_lines, "intro_lines"):
        warns.append("intro: " + t(language, "recommended_max_lines", n=CONTENT_LIMITS["intro_lines"]))

    for i, block in enumerate(document.right_column.experience):
        where = f"experience[{i}]"
        if exceeds_limit(count_lines(block.key_milestones), "milestone_lines"):
            warns.append(
                f"{where}.keyMilestones: "
                + t(language, "recommended_max_lines", n=CONTENT_LIMITS["milestone_lines"])
            )
        if exceeds_limit(len(block.bullets), "bullets_per_job"):
            warns.append(
                f"{where}.bullets: " + t(language, "recommended_max_bullets", n=CONTENT_LIMITS["bullets_per_job"])
            )
        for j, bullet in enumerate(block.bullets):
            if exceeds_limit(len(bullet.content.strip()), "bullet_chars"):
                warns.append(
                    f"{where}.bullets[{j}]: "
                    + t(language, "recommended_max_chars", n=CONTENT_LIMITS["bullet_chars"])
                )
    return warns


def verify_document(document: CVDocument) -> VerificationResult:
    """
    Verify a document against its standing invariants.

    Returns:
        VerificationResult with errors for broken invariants and warnings
        for content over the recommended limits
    """
    errs: List[str] = []

    if not is_sorted_experience(document.right_column.experience):
        errs.append("experience not in reverse-chronological order")

    for where, text in _document_fields(document):
        if is_placeholder(text):
            errs.append(f"placeholder text in {where}")

    for i, block in enumerate(document.right_column.experience):
        if not block.title.strip() and not block.company.strip():
            errs.append(f"experience[{i}] has neither title nor company")

    seen = set()
    duplicates = set()
    for item_id in _all_ids(document):
        if item_id in seen:
            duplicates.add(item_id)
        seen.add(item_id)
    if duplicates:
        errs.append("duplicate ids: " + ", ".join(sorted(duplicates)))

    warns = content_limit_warnings(document)
    return VerificationResult(ok=not errs, errors=errs, warnings=warns)


__all__ = [
    "CONTENT_LIMITS",
    "content_limit_warnings",
    "count_lines",
    "exceeds_limit",
    "is_placeholder",
    "verify_document",
]
