"""
Turning assistant answers into document suggestions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..models import AISuggestion, CVDocument, SuggestionStatus
from ..shared import generate_id, to_iso, utc_now
from .base import AssistResponse


def wrap_suggestion(
    response: AssistResponse,
    original_content: str,
    *,
    now: Optional[datetime] = None,
    suggestion_id: Optional[str] = None,
) -> AISuggestion:
    """Wrap an assistant response as a pending suggestion; the text is not validated."""
    return AISuggestion(
        id=suggestion_id or generate_id(),
        original_content=original_content or "",
        suggested_content=response.suggestion,
        rationale=response.rationale or None,
        status=SuggestionStatus.PENDING,
        created_at=to_iso(now or utc_now()),
    )


def document_as_context(document: CVDocument) -> str:
    """
    Plain-text CV rendering used as prompt context.

    Experience is listed in document order, which is always newest first.
    """
    lines = []
    intro = document.right_column.professional_intro.content.strip()
    if intro:
        lines.extend(["Profile:", intro, ""])
    if document.right_column.experience:
        lines.append("Experience:")
        for block in document.right_column.experience:
            period = " - ".join(p for p in (block.start_date, block.end_date or "present") if p)
            heading = ", ".join(p for p in (block.title, block.company) if p)
            lines.append(f"{heading} ({period})" if period else heading)
            if block.key_milestones:
                lines.append(block.key_milestones)
            lines.extend(f"• {b.content}" for b in block.bullets if b.content)
        lines.append("")
    if document.left_column.education:
        lines.append("Education:")
        lines.extend(
            ", ".join(p for p in (e.title, e.institution, e.year) if p) for e in document.left_column.education
        )
        lines.append("")
    if document.left_column.skills:
        lines.append("Skills: " + ", ".join(s.name for s in document.left_column.skills if s.name))
    return "\n".join(lines).strip()
