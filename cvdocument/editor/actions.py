"""
The closed set of document editing actions.

Every action is a frozen dataclass. Actions that add items carry the new
item (with its id) so the reducer stays deterministic.

Two class attributes drive the editor session:
- undoable: the pre-action document is pushed onto the undo stack
- resets_history: the action replaces the document and clears undo/redo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional, Union

from ..models import (
    AISuggestion,
    BulletItem,
    CVDocument,
    EducationItem,
    ExperienceBlock,
    FontFamily,
    LanguageItem,
    PersonalData,
    SkillItem,
    TextSize,
    create_bullet_item,
    create_education_item,
    create_experience_block,
    create_language_item,
    create_skill_item,
)
from ..shared import generate_id


# ------------------------- Suggestion targets -------------------------

INTRO = "intro"
MILESTONES = "milestones"
BULLET = "bullet"


@dataclass(frozen=True)
class SuggestionTarget:
    """Field an AI suggestion is attached to."""
    kind: str
    experience_id: Optional[str] = None
    bullet_id: Optional[str] = None

    @classmethod
    def intro(cls) -> "SuggestionTarget":
        return cls(INTRO)

    @classmethod
    def milestones(cls, experience_id: str) -> "SuggestionTarget":
        return cls(MILESTONES, experience_id=experience_id)

    @classmethod
    def bullet(cls, experience_id: str, bullet_id: str) -> "SuggestionTarget":
        return cls(BULLET, experience_id=experience_id, bullet_id=bullet_id)


# ------------------------- Base -------------------------

@dataclass(frozen=True)
class Action:
    undoable: ClassVar[bool] = True
    resets_history: ClassVar[bool] = False


# ------------------------- Document -------------------------

@dataclass(frozen=True)
class LoadDocument(Action):
    undoable: ClassVar[bool] = False
    resets_history: ClassVar[bool] = True
    document: Optional[CVDocument] = None


@dataclass(frozen=True)
class CreateDocument(Action):
    undoable: ClassVar[bool] = False
    resets_history: ClassVar[bool] = True
    job_context_id: str = ""
    language: str = "da"


@dataclass(frozen=True)
class UpdateDocument(Action):
    """Generic partial update of language, left_column, right_column or settings."""
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToggleProfilePhoto(Action):
    # None flips the current value
    show: Optional[bool] = None


@dataclass(frozen=True)
class UpdatePersonalData(Action):
    personal_data: PersonalData = field(default_factory=PersonalData)


@dataclass(frozen=True)
class UpdateProfessionalIntro(Action):
    content: str = ""


@dataclass(frozen=True)
class UpdateSettings(Action):
    font_family: Optional[Union[FontFamily, str]] = None
    text_size: Optional[Union[TextSize, str]] = None


# ------------------------- Education -------------------------

@dataclass(frozen=True)
class AddEducation(Action):
    item: EducationItem = field(default_factory=create_education_item)


@dataclass(frozen=True)
class UpdateEducation(Action):
    item_id: str = ""
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveEducation(Action):
    item_id: str = ""


@dataclass(frozen=True)
class ReorderEducation(Action):
    from_index: int = 0
    to_index: int = 0


# ------------------------- Skills -------------------------

@dataclass(frozen=True)
class AddSkill(Action):
    item: SkillItem = field(default_factory=create_skill_item)


@dataclass(frozen=True)
class UpdateSkill(Action):
    item_id: str = ""
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveSkill(Action):
    item_id: str = ""


@dataclass(frozen=True)
class ReorderSkills(Action):
    from_index: int = 0
    to_index: int = 0


# ------------------------- Languages -------------------------

@dataclass(frozen=True)
class AddLanguage(Action):
    item: LanguageItem = field(default_factory=create_language_item)


@dataclass(frozen=True)
class UpdateLanguage(Action):
    item_id: str = ""
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveLanguage(Action):
    item_id: str = ""


@dataclass(frozen=True)
class ReorderLanguages(Action):
    from_index: int = 0
    to_index: int = 0


# ------------------------- Experience -------------------------

@dataclass(frozen=True)
class AddExperience(Action):
    block: ExperienceBlock = field(default_factory=create_experience_block)


@dataclass(frozen=True)
class UpdateExperience(Action):
    experience_id: str = ""
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveExperience(Action):
    experience_id: str = ""


@dataclass(frozen=True)
class ReorderExperience(Action):
    """Moves a block; the chronological order still wins, so this only reorders ties."""
    from_index: int = 0
    to_index: int = 0


# ------------------------- Bullets -------------------------

@dataclass(frozen=True)
class AddBullet(Action):
    experience_id: str = ""
    bullet: BulletItem = field(default_factory=create_bullet_item)


@dataclass(frozen=True)
class UpdateBullet(Action):
    experience_id: str = ""
    bullet_id: str = ""
    content: str = ""


@dataclass(frozen=True)
class RemoveBullet(Action):
    experience_id: str = ""
    bullet_id: str = ""


@dataclass(frozen=True)
class ReorderBullets(Action):
    experience_id: str = ""
    from_index: int = 0
    to_index: int = 0


# ------------------------- AI suggestions -------------------------

@dataclass(frozen=True)
class SetSuggestion(Action):
    """Attach (or, with None, detach) a suggestion; ephemeral, not undoable."""
    undoable: ClassVar[bool] = False
    target: SuggestionTarget = field(default_factory=SuggestionTarget.intro)
    suggestion: Optional[AISuggestion] = None


@dataclass(frozen=True)
class AcceptSuggestion(Action):
    target: SuggestionTarget = field(default_factory=SuggestionTarget.intro)


@dataclass(frozen=True)
class EditSuggestion(Action):
    target: SuggestionTarget = field(default_factory=SuggestionTarget.intro)
    content: str = ""


@dataclass(frozen=True)
class RejectSuggestion(Action):
    undoable: ClassVar[bool] = False
    target: SuggestionTarget = field(default_factory=SuggestionTarget.intro)


# ------------------------- Checkpoints -------------------------

@dataclass(frozen=True)
class CreateCheckpoint(Action):
    undoable: ClassVar[bool] = False
    name: str = ""
    checkpoint_id: str = field(default_factory=generate_id)


@dataclass(frozen=True)
class RestoreCheckpoint(Action):
    checkpoint_id: str = ""


@dataclass(frozen=True)
class DeleteCheckpoint(Action):
    undoable: ClassVar[bool] = False
    checkpoint_id: str = ""


# ------------------------- History -------------------------

@dataclass(frozen=True)
class Undo(Action):
    undoable: ClassVar[bool] = False


@dataclass(frozen=True)
class Redo(Action):
    undoable: ClassVar[bool] = False
