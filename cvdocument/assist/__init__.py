"""
AI text assistance for document fields.
"""

from .base import AssistKind, AssistRequest, AssistResponse, TextAssistant
from .openai_assistant import OpenAITextAssistant
from .suggestions import document_as_context, wrap_suggestion

__all__ = [
    "AssistKind",
    "AssistRequest",
    "AssistResponse",
    "OpenAITextAssistant",
    "TextAssistant",
    "document_as_context",
    "wrap_suggestion",
]
