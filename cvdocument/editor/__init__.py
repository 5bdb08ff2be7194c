"""
Document editing: actions, the pure reducer and the editing session.
"""

from . import actions
from .actions import Action, SuggestionTarget
from .reducer import get_target_content, get_target_suggestion, reduce
from .session import HISTORY_LIMIT, DocumentEditor

__all__ = [
    "Action",
    "DocumentEditor",
    "HISTORY_LIMIT",
    "SuggestionTarget",
    "actions",
    "get_target_content",
    "get_target_suggestion",
    "reduce",
]
