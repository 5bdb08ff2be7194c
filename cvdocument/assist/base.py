"""
Base interface for AI text assistants.

A text assistant is an opaque text-in/text-out collaborator: it rewrites or
generates prose for one document field. The document engine only wraps
its answer in a pending AISuggestion; accepting it is an explicit edit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class AssistKind(str, Enum):
    REWRITE_INTRO = "rewrite-intro"
    GENERATE_INTRO_FROM_EXPERIENCE = "generate-intro-from-experience"
    GENERATE_MILESTONES = "generate-milestones"
    REWRITE_BULLET = "rewrite-bullet"
    TIGHTEN_TEXT = "tighten-text"


@dataclass(frozen=True)
class AssistRequest:
    kind: AssistKind
    content: Optional[str] = None
    bullets: List[str] = field(default_factory=list)
    title: Optional[str] = None
    company: Optional[str] = None
    job_description_context: Optional[str] = None
    # plain-text rendering of the CV, for generate-intro-from-experience
    cv_context: Optional[str] = None
    language: str = "da"


@dataclass(frozen=True)
class AssistResponse:
    suggestion: str
    rationale: Optional[str] = None


class TextAssistant(ABC):
    """
    Abstract base class for text assistants.
    """

    @abstractmethod
    def assist(self, request: AssistRequest) -> AssistResponse:
        """
        Produce a suggestion for one field.

        Args:
            request: What to rewrite or generate, plus context

        Returns:
            AssistResponse with the suggested text and an optional rationale

        Raises:
            ValueError: If the request lacks the input its kind needs
            RuntimeError: If the underlying service fails
        """
        ...
