"""
Document normalizer.

Reconciles everything known about an uploaded CV into one CVDocument:

1. AI-structured data with content, unless an existing document for the
   same job context shows user edits (that document is returned unchanged)
2. an existing document with content
3. legacy extraction output, mapped field for field
4. the raw CV text through the heuristic text parser

Every tier goes through the same mapping rules, and the result is always
sorted reverse-chronologically. Nothing is synthesized: fields absent from
every source stay empty, and entries with neither title nor company are
dropped. Item ids are derived from the job context and the item itself, so
normalizing the same inputs twice gives the same document.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from .dates import format_date_for_display, normalize_end_date, sort_experience
from .extractors.text_parser import parse_cv_text
from .locales import DEFAULT_LANGUAGE, detect_language
from .logging_utils import LOG
from .models import (
    LEGACY_LEVEL_LABELS,
    BulletItem,
    CVDocument,
    EducationItem,
    ExperienceBlock,
    LanguageItem,
    LeftColumn,
    ProfessionalIntro,
    RightColumn,
    SkillItem,
    create_empty_document,
    with_sorted_experience,
)
from .shared import clean_text, parse_iso, stable_id
from .sources import ParsedCVData, RawCVData, StructuredCVData

USER_EDIT_THRESHOLD = timedelta(seconds=60)

# descriptions longer than this are treated as narrative
PROSE_MIN_LENGTH = 100
_SENTENCE_END = (".", "!", "?")


# ------------------------- Source checks -------------------------

def has_structured_content(structured: Optional[StructuredCVData]) -> bool:
    return structured is not None and structured.has_content()


def has_user_edits(document: CVDocument) -> bool:
    """
    Heuristic evidence of manual edits: a checkpoint exists, or the document
    was updated more than USER_EDIT_THRESHOLD after creation.
    """
    if document.checkpoints:
        return True
    created = parse_iso(document.created_at)
    updated = parse_iso(document.updated_at)
    if created is None or updated is None:
        return False
    return (updated - created) > USER_EDIT_THRESHOLD


def has_existing_content(document: Optional[CVDocument]) -> bool:
    return document is not None and document.has_content()


# ------------------------- Mapping rules -------------------------

def is_prose_like(description: str, has_bullets: bool) -> bool:
    text = description.strip()
    if not text:
        return False
    return len(text) > PROSE_MIN_LENGTH or text.endswith(_SENTENCE_END) or not has_bullets


def _milestones(explicit: Optional[str], description: Optional[str], bullets: Sequence[str]) -> str:
    explicit = clean_text(explicit)
    if explicit:
        return explicit
    description = clean_text(description)
    if description and is_prose_like(description, bool(bullets)):
        return description
    return ""


def _experience_block(
    job_context_id: str,
    index: int,
    *,
    language: str,
    title: Optional[str],
    company: Optional[str],
    location: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    key_milestones: str,
    bullets: Iterable[str],
) -> Optional[ExperienceBlock]:
    title = clean_text(title)
    company = clean_text(company)
    if not title and not company:
        return None

    block_id = stable_id("exp", job_context_id, index, title, company)
    contents = [clean_text(b) for b in bullets]
    bullet_items = tuple(
        BulletItem(id=stable_id("bullet", block_id, j, content), content=content)
        for j, content in enumerate(c for c in contents if c)
    )
    return ExperienceBlock(
        id=block_id,
        title=title,
        company=company,
        location=clean_text(location) or None,
        start_date=format_date_for_display(start_date, language),
        end_date=normalize_end_date(end_date, language),
        key_milestones=key_milestones,
        bullets=bullet_items,
    )


def _education_item(job_context_id: str, index: int, title: Optional[str], institution: Optional[str],
                    year: Optional[str]) -> Optional[EducationItem]:
    title = clean_text(title)
    institution = clean_text(institution)
    if not title and not institution:
        return None
    year = clean_text(year)
    return EducationItem(
        id=stable_id("edu", job_context_id, index, title, institution, year),
        title=title,
        institution=institution,
        year=year,
    )


def _skill_items(job_context_id: str, names: Iterable[str]) -> Tuple[SkillItem, ...]:
    seen: List[str] = []
    for name in names:
        name = clean_text(name)
        if name and name not in seen:
            seen.append(name)
    return tuple(SkillItem(id=stable_id("skill", job_context_id, i, n), name=n) for i, n in enumerate(seen))


def _language_item(job_context_id: str, index: int, language: Optional[str], level: Optional[str],
                   *, map_legacy_levels: bool = False) -> Optional[LanguageItem]:
    language = clean_text(language)
    if not language:
        return None
    level = clean_text(level)
    if map_legacy_levels:
        level = LEGACY_LEVEL_LABELS.get(level.lower(), level)
    return LanguageItem(
        id=stable_id("lang", job_context_id, index, language),
        language=language,
        level=level,
    )


def _compact(items: Iterable[Optional[object]]) -> tuple:
    return tuple(i for i in items if i is not None)


def _build_document(
    job_context_id: str,
    language: str,
    now: Optional[datetime],
    *,
    intro: Optional[str],
    experience: Iterable[Optional[ExperienceBlock]],
    education: Iterable[Optional[EducationItem]],
    skills: Tuple[SkillItem, ...],
    languages: Iterable[Optional[LanguageItem]],
) -> CVDocument:
    base = create_empty_document(job_context_id, language, now=now)
    return replace(
        base,
        left_column=LeftColumn(
            education=_compact(education),
            skills=skills,
            languages=_compact(languages),
        ),
        right_column=RightColumn(
            professional_intro=ProfessionalIntro(content=clean_text(intro)),
            experience=sort_experience(_compact(experience)),
        ),
    )


def map_structured_data(
    job_context_id: str, structured: StructuredCVData, language: str, *, now: Optional[datetime] = None
) -> CVDocument:
    """Map AI-structured data onto a fresh document."""
    return _build_document(
        job_context_id,
        language,
        now,
        intro=structured.professional_intro,
        experience=(
            _experience_block(
                job_context_id,
                i,
                language=language,
                title=e.title,
                company=e.company,
                location=e.location,
                start_date=e.start_date,
                end_date=e.end_date,
                key_milestones=_milestones(e.key_milestones, None, e.bullets),
                bullets=e.bullets,
            )
            for i, e in enumerate(structured.experience)
        ),
        education=(
            _education_item(job_context_id, i, e.title, e.institution, e.year)
            for i, e in enumerate(structured.education)
        ),
        skills=_skill_items(job_context_id, structured.skills),
        languages=(
            _language_item(job_context_id, i, lang.language, lang.level)
            for i, lang in enumerate(structured.languages)
        ),
    )


def map_parsed_data(
    job_context_id: str,
    parsed: ParsedCVData,
    language: str,
    *,
    now: Optional[datetime] = None,
    legacy: bool = False,
) -> CVDocument:
    """
    Map parser (or legacy extraction) output onto a fresh document.

    Legacy extraction used English level keys ("fluent"); those are mapped
    to their display label. Parser output keeps levels as written in the CV.
    """
    education: List[Optional[EducationItem]] = [
        _education_item(job_context_id, i, e.degree or e.field_of_study, e.institution, e.year)
        for i, e in enumerate(parsed.education)
    ]
    offset = len(education)
    education.extend(
        _education_item(job_context_id, offset + i, cert, None, None)
        for i, cert in enumerate(parsed.certifications)
    )

    return _build_document(
        job_context_id,
        language,
        now,
        intro=parsed.summary or parsed.profile,
        experience=(
            _experience_block(
                job_context_id,
                i,
                language=language,
                title=e.title,
                company=e.company,
                location=e.location,
                start_date=e.start_date,
                end_date=e.end_date,
                key_milestones=_milestones(e.summary, e.description, e.bullets),
                bullets=e.bullets,
            )
            for i, e in enumerate(parsed.experience)
        ),
        education=education,
        skills=_skill_items(job_context_id, parsed.skills),
        languages=(
            _language_item(job_context_id, i, lang.language, lang.level, map_legacy_levels=legacy)
            for i, lang in enumerate(parsed.languages)
        ),
    )


# ------------------------- Main entry point -------------------------

def _source_text(raw_data: RawCVData) -> str:
    if raw_data.cv_text and raw_data.cv_text.strip():
        return raw_data.cv_text
    parts: List[str] = []
    structured = raw_data.ai_structured
    if structured is not None:
        parts.append(structured.professional_intro or "")
        for e in structured.experience:
            parts.extend([e.title, e.company, e.start_date, e.end_date or "", e.key_milestones or ""])
            parts.extend(e.bullets)
        parts.extend(structured.skills)
    return "\n".join(p for p in parts if p)


def normalize(
    job_context_id: str,
    raw_data: Optional[RawCVData],
    existing_document: Optional[CVDocument] = None,
    *,
    now: Optional[datetime] = None,
) -> CVDocument:
    """
    Build the document for a job context from the available sources.

    Args:
        job_context_id: Job context the document belongs to
        raw_data: Raw CV text plus optional legacy and structured extractions
        existing_document: Previously persisted document, if any
        now: createdAt and updatedAt of a new document (defaults to the
            current UTC time). These are the only clock-dependent fields, so
            byte-identical output for identical inputs requires passing now.

    Returns:
        A CVDocument whose experience is sorted reverse-chronologically
    """
    raw_data = raw_data or RawCVData()
    structured = raw_data.ai_structured

    if has_structured_content(structured):
        if (
            existing_document is not None
            and existing_document.job_context_id == job_context_id
            and has_user_edits(existing_document)
        ):
            LOG.info("Keeping user-edited document for %s over structured data", job_context_id)
            return with_sorted_experience(existing_document)
        language = detect_language(_source_text(raw_data), DEFAULT_LANGUAGE)
        LOG.info("Normalizing %s from structured data (%s)", job_context_id, language)
        return map_structured_data(job_context_id, structured, language, now=now)

    if has_existing_content(existing_document):
        LOG.info("Keeping existing document for %s", job_context_id)
        return with_sorted_experience(existing_document)

    language = detect_language(raw_data.cv_text, DEFAULT_LANGUAGE)

    legacy = raw_data.legacy_extracted
    if legacy is not None and not legacy.is_empty():
        LOG.info("Normalizing %s from legacy extraction (%s)", job_context_id, language)
        return map_parsed_data(job_context_id, legacy, language, now=now, legacy=True)

    parsed = parse_cv_text(raw_data.cv_text)
    if parsed.is_empty():
        LOG.info("No CV content found for %s; creating an empty document", job_context_id)
    else:
        LOG.info("Normalizing %s from raw CV text (%s)", job_context_id, language)
    return map_parsed_data(job_context_id, parsed, language, now=now)


__all__ = [
    "PROSE_MIN_LENGTH",
    "USER_EDIT_THRESHOLD",
    "has_existing_content",
    "has_structured_content",
    "has_user_edits",
    "is_prose_like",
    "map_parsed_data",
    "map_structured_data",
    "normalize",
]
