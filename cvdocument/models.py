"""
CV document model.

One CVDocument exists per job context. Every type here is a frozen
dataclass whose collections are tuples, so a document is an immutable value:
edits go through dataclasses.replace() and produce a new document.

Documents serialize to a camelCase JSON form (to_dict / from_dict,
dumps_document / loads_document). Reading is lenient: wrong types become
empty values and unreadable JSON yields None instead of an exception.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .dates import is_sorted_experience, sort_experience
from .logging_utils import LOG
from .shared import generate_id, stable_id, to_iso, utc_now

# ------------------------- Vocabularies -------------------------

# Selectable language levels (stored and displayed verbatim)
LANGUAGE_LEVEL_OPTIONS: Tuple[str, ...] = (
    "Modersmål",
    "Flydende",
    "Avanceret",
    "Mellem",
    "Grundlæggende",
)

# Older extraction output used English level keys
LEGACY_LEVEL_LABELS: Dict[str, str] = {
    "native": "Modersmål",
    "fluent": "Flydende",
    "advanced": "Avanceret",
    "intermediate": "Mellem",
    "basic": "Grundlæggende",
}


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EDITED = "edited"
    REJECTED = "rejected"


class FontFamily(str, Enum):
    INTER = "inter"
    GEORGIA = "georgia"
    ROBOTO = "roboto"


class TextSize(str, Enum):
    SMALL = "small"
    NORMAL = "normal"
    LARGE = "large"


# ------------------------- Lenient readers -------------------------

def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _bool(value: Any, default: bool = False) -> bool:
    return value if isinstance(value, bool) else default


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _enum(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _put(out: Dict[str, Any], key: str, value: Any) -> None:
    """Only emit optional keys that carry a value."""
    if value is not None:
        out[key] = value


# ------------------------- Models -------------------------

@dataclass(frozen=True)
class AISuggestion:
    id: str
    original_content: str
    suggested_content: str
    status: SuggestionStatus = SuggestionStatus.PENDING
    created_at: str = ""
    rationale: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "originalContent": self.original_content,
            "suggestedContent": self.suggested_content,
        }
        _put(out, "rationale", self.rationale)
        out["status"] = self.status.value
        out["createdAt"] = self.created_at
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Optional["AISuggestion"]:
        if not isinstance(data, dict):
            return None
        return cls(
            id=_str(data.get("id")) or generate_id(),
            original_content=_str(data.get("originalContent")),
            suggested_content=_str(data.get("suggestedContent")),
            status=_enum(SuggestionStatus, data.get("status"), SuggestionStatus.PENDING),
            created_at=_str(data.get("createdAt")),
            rationale=_opt_str(data.get("rationale")),
        )


@dataclass(frozen=True)
class BulletItem:
    id: str
    content: str = ""
    ai_suggestion: Optional[AISuggestion] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "content": self.content}
        _put(out, "aiSuggestion", self.ai_suggestion.to_dict() if self.ai_suggestion else None)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BulletItem":
        return cls(
            id=_str(data.get("id")) or generate_id(),
            content=_str(data.get("content")),
            ai_suggestion=AISuggestion.from_dict(data.get("aiSuggestion")),
        )


@dataclass(frozen=True)
class ExperienceBlock:
    id: str
    title: str = ""
    company: str = ""
    start_date: str = ""
    # None means the role is ongoing
    end_date: Optional[str] = None
    location: Optional[str] = None
    key_milestones: str = ""
    key_milestones_ai_suggestion: Optional[AISuggestion] = None
    bullets: Tuple[BulletItem, ...] = ()

    @property
    def is_ongoing(self) -> bool:
        return self.end_date is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "company": self.company,
        }
        _put(out, "location", self.location)
        out["startDate"] = self.start_date
        _put(out, "endDate", self.end_date)
        out["keyMilestones"] = self.key_milestones
        _put(
            out,
            "keyMilestonesAiSuggestion",
            self.key_milestones_ai_suggestion.to_dict() if self.key_milestones_ai_suggestion else None,
        )
        out["bullets"] = [b.to_dict() for b in self.bullets]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperienceBlock":
        end_date = _opt_str(data.get("endDate"))
        return cls(
            id=_str(data.get("id")) or generate_id(),
            title=_str(data.get("title")),
            company=_str(data.get("company")),
            start_date=_str(data.get("startDate")),
            end_date=end_date if end_date else None,
            location=_opt_str(data.get("location")),
            key_milestones=_str(data.get("keyMilestones")),
            key_milestones_ai_suggestion=AISuggestion.from_dict(data.get("keyMilestonesAiSuggestion")),
            bullets=tuple(BulletItem.from_dict(b) for b in _dicts(data.get("bullets"))),
        )


@dataclass(frozen=True)
class EducationItem:
    id: str
    title: str = ""
    institution: str = ""
    year: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "institution": self.institution, "year": self.year}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EducationItem":
        return cls(
            id=_str(data.get("id")) or generate_id(),
            title=_str(data.get("title")),
            institution=_str(data.get("institution")),
            year=_str(data.get("year")),
        )


@dataclass(frozen=True)
class SkillItem:
    id: str
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkillItem":
        return cls(id=_str(data.get("id")) or generate_id(), name=_str(data.get("name")))


@dataclass(frozen=True)
class LanguageItem:
    id: str
    language: str = ""
    # verbatim display text, never translated
    level: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "language": self.language, "level": self.level}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LanguageItem":
        return cls(
            id=_str(data.get("id")) or generate_id(),
            language=_str(data.get("language")),
            level=_str(data.get("level")),
        )


@dataclass(frozen=True)
class PersonalField:
    value: str = ""
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PersonalField"]:
        if not isinstance(data, dict):
            return None
        return cls(value=_str(data.get("value")), enabled=_bool(data.get("enabled"), True))


@dataclass(frozen=True)
class CustomField:
    id: str
    label: str = ""
    value: str = ""
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "value": self.value, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomField":
        return cls(
            id=_str(data.get("id")) or generate_id(),
            label=_str(data.get("label")),
            value=_str(data.get("value")),
            enabled=_bool(data.get("enabled"), True),
        )


@dataclass(frozen=True)
class PersonalData:
    """Optional personal details; each field is shown only when enabled."""
    birth_year: Optional[PersonalField] = None
    nationality: Optional[PersonalField] = None
    drivers_license: Optional[PersonalField] = None
    custom_fields: Tuple[CustomField, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        _put(out, "birthYear", self.birth_year.to_dict() if self.birth_year else None)
        _put(out, "nationality", self.nationality.to_dict() if self.nationality else None)
        _put(out, "driversLicense", self.drivers_license.to_dict() if self.drivers_license else None)
        if self.custom_fields:
            out["customFields"] = [f.to_dict() for f in self.custom_fields]
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "PersonalData":
        if not isinstance(data, dict):
            return cls()
        return cls(
            birth_year=PersonalField.from_dict(data.get("birthYear")),
            nationality=PersonalField.from_dict(data.get("nationality")),
            drivers_license=PersonalField.from_dict(data.get("driversLicense")),
            custom_fields=tuple(CustomField.from_dict(f) for f in _dicts(data.get("customFields"))),
        )


@dataclass(frozen=True)
class ProfessionalIntro:
    content: str = ""
    ai_suggestion: Optional[AISuggestion] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"content": self.content}
        _put(out, "aiSuggestion", self.ai_suggestion.to_dict() if self.ai_suggestion else None)
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "ProfessionalIntro":
        if not isinstance(data, dict):
            return cls()
        return cls(
            content=_str(data.get("content")),
            ai_suggestion=AISuggestion.from_dict(data.get("aiSuggestion")),
        )


@dataclass(frozen=True)
class LeftColumn:
    """Factual sidebar."""
    show_profile_photo: bool = False
    personal_data: PersonalData = field(default_factory=PersonalData)
    education: Tuple[EducationItem, ...] = ()
    skills: Tuple[SkillItem, ...] = ()
    languages: Tuple[LanguageItem, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "showProfilePhoto": self.show_profile_photo,
            "personalData": self.personal_data.to_dict(),
            "education": [e.to_dict() for e in self.education],
            "skills": [s.to_dict() for s in self.skills],
            "languages": [lang.to_dict() for lang in self.languages],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "LeftColumn":
        if not isinstance(data, dict):
            return cls()
        return cls(
            show_profile_photo=_bool(data.get("showProfilePhoto")),
            personal_data=PersonalData.from_dict(data.get("personalData")),
            education=tuple(EducationItem.from_dict(e) for e in _dicts(data.get("education"))),
            skills=tuple(SkillItem.from_dict(s) for s in _dicts(data.get("skills"))),
            languages=tuple(LanguageItem.from_dict(lang) for lang in _dicts(data.get("languages"))),
        )


@dataclass(frozen=True)
class RightColumn:
    """Persuasive main content."""
    professional_intro: ProfessionalIntro = field(default_factory=ProfessionalIntro)
    experience: Tuple[ExperienceBlock, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "professionalIntro": self.professional_intro.to_dict(),
            "experience": [e.to_dict() for e in self.experience],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "RightColumn":
        if not isinstance(data, dict):
            return cls()
        return cls(
            professional_intro=ProfessionalIntro.from_dict(data.get("professionalIntro")),
            experience=tuple(ExperienceBlock.from_dict(e) for e in _dicts(data.get("experience"))),
        )


@dataclass(frozen=True)
class CVSettings:
    """Presentation only; never affects content."""
    font_family: FontFamily = FontFamily.INTER
    text_size: TextSize = TextSize.NORMAL

    def to_dict(self) -> Dict[str, Any]:
        return {"fontFamily": self.font_family.value, "textSize": self.text_size.value}

    @classmethod
    def from_dict(cls, data: Any) -> "CVSettings":
        if not isinstance(data, dict):
            return cls()
        return cls(
            font_family=_enum(FontFamily, data.get("fontFamily"), FontFamily.INTER),
            text_size=_enum(TextSize, data.get("textSize"), TextSize.NORMAL),
        )


@dataclass(frozen=True)
class Checkpoint:
    id: str
    name: str
    created_at: str
    # serialized CVDocument
    snapshot: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "createdAt": self.created_at, "snapshot": self.snapshot}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Checkpoint":
        return cls(
            id=_str(data.get("id")) or generate_id(),
            name=_str(data.get("name")),
            created_at=_str(data.get("createdAt")),
            snapshot=_str(data.get("snapshot")),
        )


@dataclass(frozen=True)
class CVDocument:
    id: str
    job_context_id: str
    created_at: str
    updated_at: str
    language: str = "da"
    left_column: LeftColumn = field(default_factory=LeftColumn)
    right_column: RightColumn = field(default_factory=RightColumn)
    settings: CVSettings = field(default_factory=CVSettings)
    checkpoints: Tuple[Checkpoint, ...] = ()

    @property
    def experience(self) -> Tuple[ExperienceBlock, ...]:
        return self.right_column.experience

    def find_experience(self, experience_id: str) -> Optional[ExperienceBlock]:
        return next((e for e in self.right_column.experience if e.id == experience_id), None)

    def find_checkpoint(self, checkpoint_id: str) -> Optional[Checkpoint]:
        return next((c for c in self.checkpoints if c.id == checkpoint_id), None)

    def has_content(self) -> bool:
        """True if intro, experience, education or skills carry anything."""
        return bool(
            self.right_column.professional_intro.content.strip()
            or self.right_column.experience
            or self.left_column.education
            or self.left_column.skills
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "jobContextId": self.job_context_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "language": self.language,
            "leftColumn": self.left_column.to_dict(),
            "rightColumn": self.right_column.to_dict(),
            "settings": self.settings.to_dict(),
            "checkpoints": [c.to_dict() for c in self.checkpoints],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CVDocument":
        job_context_id = _str(data.get("jobContextId")) or _str(data.get("jobId"))
        return cls(
            id=_str(data.get("id")) or stable_id("cv", job_context_id),
            job_context_id=job_context_id,
            created_at=_str(data.get("createdAt")),
            updated_at=_str(data.get("updatedAt")),
            language=_str(data.get("language")) or "da",
            left_column=LeftColumn.from_dict(data.get("leftColumn")),
            right_column=RightColumn.from_dict(data.get("rightColumn")),
            settings=CVSettings.from_dict(data.get("settings")),
            checkpoints=tuple(Checkpoint.from_dict(c) for c in _dicts(data.get("checkpoints"))),
        )


# ------------------------- Serialization -------------------------

def dumps_document(document: CVDocument) -> str:
    return json.dumps(document.to_dict(), ensure_ascii=False)


def loads_document(serialized: Optional[str]) -> Optional[CVDocument]:
    """
    Deserialize a stored document.

    Returns None (and logs) for missing, malformed or non-object input.
    """
    if not serialized or not isinstance(serialized, str):
        return None
    try:
        data = json.loads(serialized)
    except (ValueError, RecursionError) as e:
        LOG.warning("Unreadable document snapshot: %s", e)
        return None
    if not isinstance(data, dict):
        LOG.warning("Document snapshot is not a JSON object")
        return None
    return CVDocument.from_dict(data)


def with_sorted_experience(document: CVDocument) -> CVDocument:
    """Return the document with experience newest first; the same object if already sorted."""
    experience = document.right_column.experience
    if is_sorted_experience(experience):
        return document
    LOG.debug("Re-sorting experience of document %s", document.id)
    return replace(document, right_column=replace(document.right_column, experience=sort_experience(experience)))


# ------------------------- Factories -------------------------

def create_empty_document(
    job_context_id: str,
    language: str = "da",
    *,
    now: Optional[datetime] = None,
) -> CVDocument:
    timestamp = to_iso(now or utc_now())
    return CVDocument(
        id=stable_id("cv", job_context_id),
        job_context_id=job_context_id,
        created_at=timestamp,
        updated_at=timestamp,
        language=language,
    )


def create_experience_block(
    title: str = "",
    company: str = "",
    start_date: str = "",
    end_date: Optional[str] = None,
    location: Optional[str] = None,
    *,
    item_id: Optional[str] = None,
) -> ExperienceBlock:
    return ExperienceBlock(
        id=item_id or generate_id(),
        title=title,
        company=company,
        start_date=start_date,
        end_date=end_date or None,
        location=location,
    )


def create_bullet_item(content: str = "", *, item_id: Optional[str] = None) -> BulletItem:
    return BulletItem(id=item_id or generate_id(), content=content)


def create_bullets(contents: Iterable[str]) -> Tuple[BulletItem, ...]:
    return tuple(create_bullet_item(c) for c in contents)


def create_education_item(
    title: str = "", institution: str = "", year: str = "", *, item_id: Optional[str] = None
) -> EducationItem:
    return EducationItem(id=item_id or generate_id(), title=title, institution=institution, year=year)


def create_skill_item(name: str = "", *, item_id: Optional[str] = None) -> SkillItem:
    return SkillItem(id=item_id or generate_id(), name=name)


def create_language_item(
    language: str = "", level: str = "", *, item_id: Optional[str] = None
) -> LanguageItem:
    return LanguageItem(id=item_id or generate_id(), language=language, level=level)


__all__ = [
    "AISuggestion",
    "BulletItem",
    "CVDocument",
    "CVSettings",
    "Checkpoint",
    "CustomField",
    "EducationItem",
    "ExperienceBlock",
    "FontFamily",
    "LANGUAGE_LEVEL_OPTIONS",
    "LEGACY_LEVEL_LABELS",
    "LanguageItem",
    "LeftColumn",
    "PersonalData",
    "PersonalField",
    "ProfessionalIntro",
    "RightColumn",
    "SkillItem",
    "SuggestionStatus",
    "TextSize",
    "create_bullet_item",
    "create_bullets",
    "create_education_item",
    "create_empty_document",
    "create_experience_block",
    "create_language_item",
    "create_skill_item",
    "dumps_document",
    "loads_document",
    "with_sorted_experience",
]
