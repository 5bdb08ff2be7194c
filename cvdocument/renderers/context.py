"""
Template context for exporters.

build_render_context() flattens a CVDocument into the plain dict the
templates consume. Experience is sorted newest first and an absent end date
is shown as the localized "present" label. Personal details are included
only when enabled.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..dates import sort_experience
from ..models import CVDocument, ExperienceBlock, PersonalData
from ..translations import t

_LABEL_KEYS = (
    "experience",
    "education",
    "skills",
    "languages",
    "profile",
    "key_milestones",
    "personal_data",
)


def _period(block: ExperienceBlock, present_label: str) -> str:
    end = block.end_date if block.end_date is not None else present_label
    if not block.start_date:
        return end if block.end_date is not None else ""
    return f"{block.start_date} - {end}"


def _experience_entry(block: ExperienceBlock, present_label: str) -> Dict[str, Any]:
    heading = " | ".join(p for p in (block.title, block.company) if p)
    return {
        "title": block.title,
        "company": block.company,
        "location": block.location or "",
        "heading": heading,
        "start_date": block.start_date,
        "end_date": block.end_date if block.end_date is not None else present_label,
        "period": _period(block, present_label),
        "is_ongoing": block.is_ongoing,
        "key_milestones": block.key_milestones,
        "bullets": [b.content for b in block.bullets if b.content.strip()],
    }


def _personal_details(personal: PersonalData, language: str) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for key, field in (
        ("birth_year", personal.birth_year),
        ("nationality", personal.nationality),
        ("drivers_license", personal.drivers_license),
    ):
        if field is not None and field.enabled and field.value.strip():
            out.append({"label": t(language, key), "value": field.value})
    for custom in personal.custom_fields:
        if custom.enabled and custom.value.strip():
            out.append({"label": custom.label, "value": custom.value})
    return out


def build_render_context(document: CVDocument) -> Dict[str, Any]:
    language = document.language
    present_label = t(language, "present")
    left = document.left_column
    return {
        "language": language,
        "labels": {key: t(language, key) for key in _LABEL_KEYS},
        "settings": document.settings.to_dict(),
        "show_profile_photo": left.show_profile_photo,
        "personal_data": _personal_details(left.personal_data, language),
        "education": [
            {"title": e.title, "institution": e.institution, "year": e.year} for e in left.education
        ],
        "skills": [s.name for s in left.skills if s.name.strip()],
        "languages": [
            {"language": lang.language, "level": lang.level} for lang in left.languages if lang.language.strip()
        ],
        "intro": document.right_column.professional_intro.content,
        "experience": [
            _experience_entry(block, present_label)
            for block in sort_experience(document.right_column.experience)
        ],
    }


__all__ = ["build_render_context"]
