"""
Pure document reducer.

reduce(document, action, now=...) returns the next document. It never
mutates its input and never performs I/O. When an action changes nothing
(unknown id, index out of range, nothing to accept) the same object is
returned, so callers can detect no-ops with `is`.

Every change refreshes updatedAt and re-sorts experience.
"""

from __future__ import annotations

from dataclasses import fields, replace
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type, TypeVar

from ..dates import sort_experience
from ..locales import contains_present_marker
from ..logging_utils import LOG
from ..models import (
    AISuggestion,
    CVDocument,
    CVSettings,
    Checkpoint,
    ExperienceBlock,
    FontFamily,
    SuggestionStatus,
    TextSize,
    create_empty_document,
    dumps_document,
    loads_document,
    with_sorted_experience,
)
from ..shared import to_iso, utc_now
from . import actions as A

T = TypeVar("T")

Handler = Callable[[CVDocument, Any, datetime], CVDocument]


# ------------------------- Collection helpers -------------------------

def _apply_changes(item: T, changes: Mapping[str, Any]) -> T:
    """dataclasses.replace restricted to known, non-id fields."""
    allowed = {f.name for f in fields(item)} - {"id"}
    accepted = {k: v for k, v in changes.items() if k in allowed}
    ignored = set(changes) - set(accepted)
    if ignored:
        LOG.debug("Ignoring unknown fields for %s: %s", type(item).__name__, sorted(ignored))
    if not accepted:
        return item
    updated = replace(item, **accepted)
    return item if updated == item else updated


def _update_by_id(items: Tuple[T, ...], item_id: str, fn: Callable[[T], T]) -> Tuple[T, ...]:
    """Return items with fn applied to the matching one; the same tuple if nothing changed."""
    changed = False
    out = []
    for item in items:
        if getattr(item, "id", None) == item_id:
            new = fn(item)
            changed = changed or new is not item
            out.append(new)
        else:
            out.append(item)
    return tuple(out) if changed else items


def _remove_by_id(items: Tuple[T, ...], item_id: str) -> Tuple[T, ...]:
    kept = tuple(i for i in items if getattr(i, "id", None) != item_id)
    return items if len(kept) == len(items) else kept


def _move(items: Tuple[T, ...], from_index: int, to_index: int) -> Tuple[T, ...]:
    n = len(items)
    if not (0 <= from_index < n and 0 <= to_index < n) or from_index == to_index:
        return items
    out = list(items)
    out.insert(to_index, out.pop(from_index))
    return tuple(out)


def _with_left(document: CVDocument, **changes: Any) -> CVDocument:
    return replace(document, left_column=replace(document.left_column, **changes))


def _with_right(document: CVDocument, **changes: Any) -> CVDocument:
    return replace(document, right_column=replace(document.right_column, **changes))


def _with_experience(document: CVDocument, experience: Tuple[ExperienceBlock, ...]) -> CVDocument:
    if experience is document.right_column.experience:
        return document
    return _with_right(document, experience=experience)


def _normalize_experience_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """An empty or "present" end date means the role is ongoing."""
    out = dict(changes)
    if "end_date" in out:
        end = out["end_date"]
        if not isinstance(end, str) or not end.strip() or contains_present_marker(end):
            out["end_date"] = None
        else:
            out["end_date"] = end.strip()
    if "bullets" in out and not isinstance(out["bullets"], tuple):
        out["bullets"] = tuple(out["bullets"])
    return out


# ------------------------- Document handlers -------------------------

def _load(document: CVDocument, action: A.LoadDocument, now: datetime) -> CVDocument:
    return action.document if action.document is not None else document


def _create(document: CVDocument, action: A.CreateDocument, now: datetime) -> CVDocument:
    return create_empty_document(action.job_context_id, action.language, now=now)


_DOCUMENT_FIELDS = ("language", "left_column", "right_column", "settings")


def _update_document(document: CVDocument, action: A.UpdateDocument, now: datetime) -> CVDocument:
    accepted = {k: v for k, v in action.changes.items() if k in _DOCUMENT_FIELDS}
    if not accepted:
        return document
    return replace(document, **accepted)


def _toggle_photo(document: CVDocument, action: A.ToggleProfilePhoto, now: datetime) -> CVDocument:
    current = document.left_column.show_profile_photo
    show = (not current) if action.show is None else bool(action.show)
    if show == current:
        return document
    return _with_left(document, show_profile_photo=show)


def _update_personal_data(document: CVDocument, action: A.UpdatePersonalData, now: datetime) -> CVDocument:
    if action.personal_data == document.left_column.personal_data:
        return document
    return _with_left(document, personal_data=action.personal_data)


def _update_intro(document: CVDocument, action: A.UpdateProfessionalIntro, now: datetime) -> CVDocument:
    intro = document.right_column.professional_intro
    if intro.content == action.content:
        return document
    return _with_right(document, professional_intro=replace(intro, content=action.content))


def _coerce_enum(enum_cls, value: Any):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        LOG.debug("Ignoring invalid %s %r", enum_cls.__name__, value)
        return None


def _update_settings(document: CVDocument, action: A.UpdateSettings, now: datetime) -> CVDocument:
    font = _coerce_enum(FontFamily, action.font_family)
    size = _coerce_enum(TextSize, action.text_size)
    settings = CVSettings(
        font_family=font or document.settings.font_family,
        text_size=size or document.settings.text_size,
    )
    if settings == document.settings:
        return document
    return replace(document, settings=settings)


# ------------------------- Left column collections -------------------------

def _left_collection_handlers(attr: str, add_cls, update_cls, remove_cls, reorder_cls) -> Dict[Type, Handler]:
    def add(document: CVDocument, action, now: datetime) -> CVDocument:
        items = getattr(document.left_column, attr)
        return _with_left(document, **{attr: items + (action.item,)})

    def update(document: CVDocument, action, now: datetime) -> CVDocument:
        items = getattr(document.left_column, attr)
        new = _update_by_id(items, action.item_id, lambda i: _apply_changes(i, action.changes))
        return document if new is items else _with_left(document, **{attr: new})

    def remove(document: CVDocument, action, now: datetime) -> CVDocument:
        items = getattr(document.left_column, attr)
        new = _remove_by_id(items, action.item_id)
        return document if new is items else _with_left(document, **{attr: new})

    def reorder(document: CVDocument, action, now: datetime) -> CVDocument:
        items = getattr(document.left_column, attr)
        new = _move(items, action.from_index, action.to_index)
        return document if new is items else _with_left(document, **{attr: new})

    return {add_cls: add, update_cls: update, remove_cls: remove, reorder_cls: reorder}


# ------------------------- Experience / bullets -------------------------

def _add_experience(document: CVDocument, action: A.AddExperience, now: datetime) -> CVDocument:
    # newest first; the sort places it properly once dates are known
    return _with_right(document, experience=(action.block,) + document.right_column.experience)


def _update_experience(document: CVDocument, action: A.UpdateExperience, now: datetime) -> CVDocument:
    changes = _normalize_experience_changes(action.changes)
    new = _update_by_id(document.right_column.experience, action.experience_id,
                        lambda e: _apply_changes(e, changes))
    return _with_experience(document, new)


def _remove_experience(document: CVDocument, action: A.RemoveExperience, now: datetime) -> CVDocument:
    return _with_experience(document, _remove_by_id(document.right_column.experience, action.experience_id))


def _reorder_experience(document: CVDocument, action: A.ReorderExperience, now: datetime) -> CVDocument:
    moved = _move(document.right_column.experience, action.from_index, action.to_index)
    if moved is document.right_column.experience:
        return document
    resorted = sort_experience(moved)
    if resorted == document.right_column.experience:
        return document
    return _with_experience(document, resorted)


def _update_bullets(document: CVDocument, experience_id: str,
                    fn: Callable[[ExperienceBlock], ExperienceBlock]) -> CVDocument:
    return _with_experience(document, _update_by_id(document.right_column.experience, experience_id, fn))


def _add_bullet(document: CVDocument, action: A.AddBullet, now: datetime) -> CVDocument:
    return _update_bullets(document, action.experience_id,
                           lambda e: replace(e, bullets=e.bullets + (action.bullet,)))


def _update_bullet(document: CVDocument, action: A.UpdateBullet, now: datetime) -> CVDocument:
    def fn(block: ExperienceBlock) -> ExperienceBlock:
        bullets = _update_by_id(block.bullets, action.bullet_id,
                                lambda b: b if b.content == action.content else replace(b, content=action.content))
        return block if bullets is block.bullets else replace(block, bullets=bullets)
    return _update_bullets(document, action.experience_id, fn)


def _remove_bullet(document: CVDocument, action: A.RemoveBullet, now: datetime) -> CVDocument:
    def fn(block: ExperienceBlock) -> ExperienceBlock:
        bullets = _remove_by_id(block.bullets, action.bullet_id)
        return block if bullets is block.bullets else replace(block, bullets=bullets)
    return _update_bullets(document, action.experience_id, fn)


def _reorder_bullets(document: CVDocument, action: A.ReorderBullets, now: datetime) -> CVDocument:
    def fn(block: ExperienceBlock) -> ExperienceBlock:
        bullets = _move(block.bullets, action.from_index, action.to_index)
        return block if bullets is block.bullets else replace(block, bullets=bullets)
    return _update_bullets(document, action.experience_id, fn)


# ------------------------- Suggestions -------------------------

def get_target_content(document: CVDocument, target: A.SuggestionTarget) -> Optional[str]:
    """Current text of a suggestion target; None if the target does not exist."""
    if target.kind == A.INTRO:
        return document.right_column.professional_intro.content
    block = document.find_experience(target.experience_id or "")
    if block is None:
        return None
    if target.kind == A.MILESTONES:
        return block.key_milestones
    if target.kind == A.BULLET:
        bullet = next((b for b in block.bullets if b.id == target.bullet_id), None)
        return bullet.content if bullet is not None else None
    return None


def get_target_suggestion(document: CVDocument, target: A.SuggestionTarget) -> Optional[AISuggestion]:
    if target.kind == A.INTRO:
        return document.right_column.professional_intro.ai_suggestion
    block = document.find_experience(target.experience_id or "")
    if block is None:
        return None
    if target.kind == A.MILESTONES:
        return block.key_milestones_ai_suggestion
    if target.kind == A.BULLET:
        bullet = next((b for b in block.bullets if b.id == target.bullet_id), None)
        return bullet.ai_suggestion if bullet is not None else None
    return None


_UNSET = object()


def _set_target(document: CVDocument, target: A.SuggestionTarget, *,
                content: Any = _UNSET, suggestion: Any = _UNSET) -> CVDocument:
    """Write content and/or suggestion of a target; the same document if it does not exist."""
    if target.kind == A.INTRO:
        intro = document.right_column.professional_intro
        changes: Dict[str, Any] = {}
        if content is not _UNSET:
            changes["content"] = content
        if suggestion is not _UNSET:
            changes["ai_suggestion"] = suggestion
        new_intro = replace(intro, **changes)
        return document if new_intro == intro else _with_right(document, professional_intro=new_intro)

    if target.kind == A.MILESTONES:
        def fn(block: ExperienceBlock) -> ExperienceBlock:
            changes: Dict[str, Any] = {}
            if content is not _UNSET:
                changes["key_milestones"] = content
            if suggestion is not _UNSET:
                changes["key_milestones_ai_suggestion"] = suggestion
            new_block = replace(block, **changes)
            return block if new_block == block else new_block
        return _update_bullets(document, target.experience_id or "", fn)

    if target.kind == A.BULLET:
        def fn_bullet(block: ExperienceBlock) -> ExperienceBlock:
            def update(bullet):
                changes: Dict[str, Any] = {}
                if content is not _UNSET:
                    changes["content"] = content
                if suggestion is not _UNSET:
                    changes["ai_suggestion"] = suggestion
                new_bullet = replace(bullet, **changes)
                return bullet if new_bullet == bullet else new_bullet
            bullets = _update_by_id(block.bullets, target.bullet_id or "", update)
            return block if bullets is block.bullets else replace(block, bullets=bullets)
        return _update_bullets(document, target.experience_id or "", fn_bullet)

    LOG.debug("Unknown suggestion target kind %r", target.kind)
    return document


def _set_suggestion(document: CVDocument, action: A.SetSuggestion, now: datetime) -> CVDocument:
    if get_target_content(document, action.target) is None:
        return document
    return _set_target(document, action.target, suggestion=action.suggestion)


def _pending_suggestion(document: CVDocument, target: A.SuggestionTarget) -> Optional[AISuggestion]:
    suggestion = get_target_suggestion(document, target)
    if suggestion is None or suggestion.status != SuggestionStatus.PENDING:
        return None
    return suggestion


def _accept_suggestion(document: CVDocument, action: A.AcceptSuggestion, now: datetime) -> CVDocument:
    suggestion = _pending_suggestion(document, action.target)
    if suggestion is None:
        return document
    return _set_target(
        document,
        action.target,
        content=suggestion.suggested_content,
        suggestion=replace(suggestion, status=SuggestionStatus.ACCEPTED),
    )


def _edit_suggestion(document: CVDocument, action: A.EditSuggestion, now: datetime) -> CVDocument:
    suggestion = _pending_suggestion(document, action.target)
    if suggestion is None:
        return document
    return _set_target(
        document,
        action.target,
        content=action.content,
        suggestion=replace(suggestion, status=SuggestionStatus.EDITED),
    )


def _reject_suggestion(document: CVDocument, action: A.RejectSuggestion, now: datetime) -> CVDocument:
    suggestion = _pending_suggestion(document, action.target)
    if suggestion is None:
        return document
    return _set_target(document, action.target, suggestion=replace(suggestion, status=SuggestionStatus.REJECTED))


# ------------------------- Checkpoints -------------------------

def _create_checkpoint(document: CVDocument, action: A.CreateCheckpoint, now: datetime) -> CVDocument:
    checkpoint = Checkpoint(
        id=action.checkpoint_id,
        name=action.name,
        created_at=to_iso(now),
        snapshot=dumps_document(document),
    )
    return replace(document, checkpoints=document.checkpoints + (checkpoint,))


def _restore_checkpoint(document: CVDocument, action: A.RestoreCheckpoint, now: datetime) -> CVDocument:
    checkpoint = document.find_checkpoint(action.checkpoint_id)
    if checkpoint is None:
        LOG.debug("Unknown checkpoint %s", action.checkpoint_id)
        return document
    restored = loads_document(checkpoint.snapshot)
    if restored is None:
        LOG.warning("Checkpoint %s has an unreadable snapshot; not restored", checkpoint.id)
        return document
    # the live checkpoint list survives a restore
    return replace(restored, checkpoints=document.checkpoints)


def _delete_checkpoint(document: CVDocument, action: A.DeleteCheckpoint, now: datetime) -> CVDocument:
    remaining = tuple(c for c in document.checkpoints if c.id != action.checkpoint_id)
    if len(remaining) == len(document.checkpoints):
        return document
    return replace(document, checkpoints=remaining)


# ------------------------- Dispatch -------------------------

HANDLERS: Dict[Type[A.Action], Handler] = {
    A.LoadDocument: _load,
    A.CreateDocument: _create,
    A.UpdateDocument: _update_document,
    A.ToggleProfilePhoto: _toggle_photo,
    A.UpdatePersonalData: _update_personal_data,
    A.UpdateProfessionalIntro: _update_intro,
    A.UpdateSettings: _update_settings,
    A.AddExperience: _add_experience,
    A.UpdateExperience: _update_experience,
    A.RemoveExperience: _remove_experience,
    A.ReorderExperience: _reorder_experience,
    A.AddBullet: _add_bullet,
    A.UpdateBullet: _update_bullet,
    A.RemoveBullet: _remove_bullet,
    A.ReorderBullets: _reorder_bullets,
    A.SetSuggestion: _set_suggestion,
    A.AcceptSuggestion: _accept_suggestion,
    A.EditSuggestion: _edit_suggestion,
    A.RejectSuggestion: _reject_suggestion,
    A.CreateCheckpoint: _create_checkpoint,
    A.RestoreCheckpoint: _restore_checkpoint,
    A.DeleteCheckpoint: _delete_checkpoint,
}
HANDLERS.update(_left_collection_handlers(
    "education", A.AddEducation, A.UpdateEducation, A.RemoveEducation, A.ReorderEducation))
HANDLERS.update(_left_collection_handlers(
    "skills", A.AddSkill, A.UpdateSkill, A.RemoveSkill, A.ReorderSkills))
HANDLERS.update(_left_collection_handlers(
    "languages", A.AddLanguage, A.UpdateLanguage, A.RemoveLanguage, A.ReorderLanguages))

# handled by the editor session (history lives outside the document)
_NO_OP_ACTIONS = (A.Undo, A.Redo)


def reduce(document: CVDocument, action: A.Action, *, now: Optional[datetime] = None) -> CVDocument:
    """
    Apply one action to a document.

    Args:
        document: Current document
        action: Any action from cvdocument.editor.actions
        now: Timestamp for updatedAt (defaults to the current UTC time)

    Returns:
        The next document, or the same object when nothing changed
    """
    if isinstance(action, _NO_OP_ACTIONS):
        return document
    handler = HANDLERS.get(type(action))
    if handler is None:
        LOG.warning("Unknown action %s ignored", type(action).__name__)
        return document

    moment = now or utc_now()
    result = handler(document, action, moment)
    if result is document:
        return document

    result = with_sorted_experience(result)
    if isinstance(action, (A.LoadDocument, A.CreateDocument)):
        return result
    return replace(result, updated_at=to_iso(moment))


__all__ = ["HANDLERS", "get_target_content", "get_target_suggestion", "reduce"]
