"""
Input shapes consumed by the normalizer.

- ParsedCVData: best-effort output of the heuristic text parser, also the
  shape of older ("legacy") extraction results
- StructuredCVData: cleaned output of the upstream structuring collaborator
- RawCVData: everything known about one uploaded CV

from_dict() readers accept camelCase JSON and ignore anything malformed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .shared import clean_text, optional_text


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [clean_text(v) for v in value if isinstance(v, str) and clean_text(v)]


def _dict_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


# ------------------------- Parser / legacy extraction -------------------------

@dataclass
class ParsedExperience:
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    # explicit narrative
    summary: Optional[str] = None
    bullets: List[str] = field(default_factory=list)
    # free lines that were neither bullets nor headers
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedExperience":
        return cls(
            title=optional_text(data.get("title")),
            company=optional_text(data.get("company")),
            location=optional_text(data.get("location")),
            start_date=optional_text(data.get("startDate")),
            end_date=optional_text(data.get("endDate")),
            summary=optional_text(data.get("summary")),
            bullets=_text_list(data.get("bullets")),
            description=optional_text(data.get("description")),
        )


@dataclass
class ParsedEducation:
    degree: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[str] = None
    field_of_study: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedEducation":
        return cls(
            degree=optional_text(data.get("degree")),
            institution=optional_text(data.get("institution")),
            year=optional_text(data.get("year")),
            field_of_study=optional_text(data.get("field")),
        )


@dataclass
class ParsedLanguage:
    language: str
    level: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedLanguage":
        return cls(language=clean_text(data.get("language")), level=optional_text(data.get("level")))


@dataclass
class ParsedCVData:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    profile: Optional[str] = None
    experience: List[ParsedExperience] = field(default_factory=list)
    education: List[ParsedEducation] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    languages: List[ParsedLanguage] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.summary
            or self.profile
            or self.experience
            or self.education
            or self.skills
            or self.languages
        )

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ParsedCVData"]:
        if not isinstance(data, dict):
            return None
        return cls(
            name=optional_text(data.get("name")),
            email=optional_text(data.get("email")),
            phone=optional_text(data.get("phone")),
            location=optional_text(data.get("location")),
            summary=optional_text(data.get("summary")),
            profile=optional_text(data.get("profile")),
            experience=[ParsedExperience.from_dict(e) for e in _dict_list(data.get("experience"))],
            education=[ParsedEducation.from_dict(e) for e in _dict_list(data.get("education"))],
            skills=_text_list(data.get("skills")),
            languages=[
                lang for lang in (ParsedLanguage.from_dict(d) for d in _dict_list(data.get("languages")))
                if lang.language
            ],
            certifications=_text_list(data.get("certifications")),
        )


# ------------------------- Structuring collaborator -------------------------

@dataclass
class StructuredExperience:
    title: str = ""
    company: str = ""
    location: Optional[str] = None
    start_date: str = ""
    end_date: Optional[str] = None
    key_milestones: Optional[str] = None
    bullets: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredExperience":
        return cls(
            title=clean_text(data.get("title")),
            company=clean_text(data.get("company")),
            location=optional_text(data.get("location")),
            start_date=clean_text(data.get("startDate")),
            end_date=optional_text(data.get("endDate")),
            key_milestones=optional_text(data.get("keyMilestones")),
            bullets=_text_list(data.get("bullets")),
        )


@dataclass
class StructuredEducation:
    title: str = ""
    institution: str = ""
    year: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredEducation":
        return cls(
            title=clean_text(data.get("title")),
            institution=clean_text(data.get("institution")),
            year=clean_text(data.get("year")),
        )


@dataclass
class StructuredLanguage:
    language: str = ""
    level: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredLanguage":
        return cls(language=clean_text(data.get("language")), level=clean_text(data.get("level")))


@dataclass
class StructuredCVData:
    professional_intro: Optional[str] = None
    experience: List[StructuredExperience] = field(default_factory=list)
    education: List[StructuredEducation] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    languages: List[StructuredLanguage] = field(default_factory=list)

    def has_content(self) -> bool:
        """At least one experience, education or skill entry, or an intro."""
        return bool(self.experience or self.education or self.skills or self.professional_intro)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "professionalIntro": self.professional_intro or "",
            "experience": [
                {
                    "title": e.title,
                    "company": e.company,
                    "location": e.location,
                    "startDate": e.start_date,
                    "endDate": e.end_date,
                    "keyMilestones": e.key_milestones,
                    "bullets": list(e.bullets),
                }
                for e in self.experience
            ],
            "education": [
                {"title": e.title, "institution": e.institution, "year": e.year} for e in self.education
            ],
            "skills": list(self.skills),
            "languages": [{"language": lang.language, "level": lang.level} for lang in self.languages],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["StructuredCVData"]:
        if not isinstance(data, dict):
            return None
        return cls(
            professional_intro=optional_text(data.get("professionalIntro")),
            experience=[StructuredExperience.from_dict(e) for e in _dict_list(data.get("experience"))],
            education=[StructuredEducation.from_dict(e) for e in _dict_list(data.get("education"))],
            skills=_text_list(data.get("skills")),
            languages=[
                lang for lang in (StructuredLanguage.from_dict(d) for d in _dict_list(data.get("languages")))
                if lang.language
            ],
        )


# ------------------------- Raw input -------------------------

@dataclass
class RawCVData:
    cv_text: str = ""
    # AI-written summary from an earlier analysis; never used as CV content
    summary: Optional[str] = None
    legacy_extracted: Optional[ParsedCVData] = None
    ai_structured: Optional[StructuredCVData] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawCVData":
        if not isinstance(data, dict):
            return cls()
        cv_text = data.get("cvText")
        return cls(
            cv_text=cv_text if isinstance(cv_text, str) else "",
            summary=optional_text(data.get("summary")),
            legacy_extracted=ParsedCVData.from_dict(data.get("extracted")),
            ai_structured=StructuredCVData.from_dict(data.get("structured")),
        )


__all__ = [
    "ParsedCVData",
    "ParsedEducation",
    "ParsedExperience",
    "ParsedLanguage",
    "RawCVData",
    "StructuredCVData",
    "StructuredEducation",
    "StructuredExperience",
    "StructuredLanguage",
]
