"""
Editing session for one CV document.

DocumentEditor owns the current document, the undo/redo history and the
calls to the persistence port. Content actions go through the pure reducer;
this class decides what is recorded in history and what is stored.

History entries are full serialized documents, bounded to history_limit.
Undo and redo keep the live checkpoint list, since checkpoints are managed
separately from content history.
"""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Deque, Dict, List, Optional

from ..assist.base import AssistRequest, AssistResponse, TextAssistant
from ..assist.suggestions import wrap_suggestion
from ..logging_utils import LOG
from ..models import (
    AISuggestion,
    CVDocument,
    Checkpoint,
    create_empty_document,
    dumps_document,
    loads_document,
    with_sorted_experience,
)
from ..normalizer import normalize
from ..persistence import DocumentStore, document_key
from ..shared import Clock, utc_now
from ..sources import RawCVData
from . import actions as A
from .reducer import get_target_content, reduce

HISTORY_LIMIT = 50


class DocumentEditor:
    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Optional[Clock] = None,
        history_limit: int = HISTORY_LIMIT,
    ):
        self._store = store
        self._clock = clock or utc_now
        self._history_limit = history_limit
        self._document: Optional[CVDocument] = None
        self._undo: Deque[str] = deque(maxlen=history_limit)
        self._redo: Deque[str] = deque(maxlen=history_limit)
        self._pending_requests: Dict[A.SuggestionTarget, int] = {}
        self._request_seq = 0
        self.warnings: List[str] = []

    # ------------------------- State -------------------------

    @property
    def document(self) -> Optional[CVDocument]:
        return self._document

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def _require_document(self) -> CVDocument:
        if self._document is None:
            raise RuntimeError("No document loaded; call load() first")
        return self._document

    def _clear_history(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self._pending_requests.clear()

    # ------------------------- Persistence -------------------------

    def _persist(self) -> None:
        document = self._require_document()
        key = document_key(document.job_context_id)
        try:
            self._store.set(key, dumps_document(document))
        except Exception as e:
            message = f"Failed to persist {key}: {e}"
            LOG.warning(message)
            self.warnings.append(message)

    def _read_stored(self, job_context_id: str) -> Optional[CVDocument]:
        key = document_key(job_context_id)
        try:
            serialized = self._store.get(key)
        except Exception as e:
            message = f"Failed to read {key}: {e}"
            LOG.warning(message)
            self.warnings.append(message)
            return None
        if serialized is None:
            return None
        document = loads_document(serialized)
        if document is None:
            LOG.warning("Stored document %s is unreadable; rebuilding", key)
            return None
        if document.job_context_id != job_context_id:
            message = f"Ignoring {key}: it belongs to job context {document.job_context_id!r}"
            LOG.warning(message)
            self.warnings.append(message)
            return None
        return document

    # ------------------------- Loading -------------------------

    def load(self, job_context_id: str, raw_data: Optional[RawCVData] = None) -> CVDocument:
        """
        Load the document of a job context.

        The stored document is read first. With raw_data the normalizer
        reconciles it with the CV sources; without, an unreadable or
        missing document is replaced by an empty one. A stored document
        of another job context counts as missing. History is cleared.
        """
        stored = self._read_stored(job_context_id)
        if raw_data is not None:
            document = normalize(job_context_id, raw_data, stored, now=self._clock())
        elif stored is not None:
            document = stored
        else:
            document = create_empty_document(job_context_id, now=self._clock())

        self._document = with_sorted_experience(document)
        self._clear_history()
        if self._document is not stored:
            self._persist()
        LOG.info("Loaded document %s for job context %s", self._document.id, job_context_id)
        return self._document

    # ------------------------- Dispatch -------------------------

    def dispatch(self, action: A.Action) -> CVDocument:
        """
        Apply an action and persist the result.

        Undoable actions record the pre-action document and clear redo.
        Actions that change nothing are not recorded.
        """
        if isinstance(action, A.Undo):
            return self.undo()
        if isinstance(action, A.Redo):
            return self.redo()

        if action.resets_history:
            current = self._document or create_empty_document(
                getattr(action, "job_context_id", "") or "", now=self._clock()
            )
            self._document = reduce(current, action, now=self._clock())
            self._clear_history()
            self._persist()
            return self._document

        before = self._require_document()
        after = reduce(before, action, now=self._clock())
        if after is before:
            LOG.debug("%s changed nothing", type(action).__name__)
            return before

        if action.undoable:
            self._undo.append(dumps_document(before))
            self._redo.clear()
        self._document = after
        self._persist()
        return after

    def undo(self) -> CVDocument:
        return self._step(self._undo, self._redo, "undo")

    def redo(self) -> CVDocument:
        return self._step(self._redo, self._undo, "redo")

    def _step(self, source: Deque[str], target: Deque[str], name: str) -> CVDocument:
        current = self._require_document()
        if not source:
            return current
        restored = loads_document(source.pop())
        if restored is None:
            LOG.warning("Dropped unreadable %s entry", name)
            return current
        target.append(dumps_document(current))
        restored = replace(restored, checkpoints=current.checkpoints)
        self._document = with_sorted_experience(restored)
        self._persist()
        return self._document

    # ------------------------- Checkpoints -------------------------

    def create_checkpoint(self, name: str) -> Checkpoint:
        action = A.CreateCheckpoint(name=name)
        document = self.dispatch(action)
        checkpoint = document.find_checkpoint(action.checkpoint_id)
        if checkpoint is None:
            raise RuntimeError(f"Checkpoint {action.checkpoint_id} was not recorded")
        LOG.info("Created checkpoint %r (%s)", name, checkpoint.id)
        return checkpoint

    def restore_checkpoint(self, checkpoint_id: str) -> CVDocument:
        return self.dispatch(A.RestoreCheckpoint(checkpoint_id))

    def delete_checkpoint(self, checkpoint_id: str) -> CVDocument:
        return self.dispatch(A.DeleteCheckpoint(checkpoint_id))

    # ------------------------- Suggestions -------------------------

    def begin_suggestion(self, target: A.SuggestionTarget) -> int:
        """Register a suggestion request; a later request for the same target supersedes it."""
        self._request_seq += 1
        self._pending_requests[target] = self._request_seq
        return self._request_seq

    def attach_suggestion(
        self, target: A.SuggestionTarget, response: AssistResponse, token: int
    ) -> Optional[AISuggestion]:
        """
        Attach an assistant response as a pending suggestion.

        Returns None (and changes nothing) when the token was superseded or
        the target no longer exists.
        """
        if self._pending_requests.get(target) != token:
            LOG.debug("Ignoring stale suggestion for %s", target)
            return None
        del self._pending_requests[target]

        original = get_target_content(self._require_document(), target)
        if original is None:
            LOG.debug("Suggestion target %s no longer exists", target)
            return None
        suggestion = wrap_suggestion(response, original, now=self._clock())
        self.dispatch(A.SetSuggestion(target=target, suggestion=suggestion))
        return suggestion

    def request_suggestion(
        self, target: A.SuggestionTarget, assistant: TextAssistant, request: AssistRequest
    ) -> Optional[AISuggestion]:
        """Ask an assistant for a suggestion and attach it; assistant errors propagate."""
        token = self.begin_suggestion(target)
        try:
            response = assistant.assist(request)
        except Exception:
            if self._pending_requests.get(target) == token:
                del self._pending_requests[target]
            raise
        return self.attach_suggestion(target, response, token)

    def accept_suggestion(self, target: A.SuggestionTarget) -> CVDocument:
        return self.dispatch(A.AcceptSuggestion(target))

    def edit_suggestion(self, target: A.SuggestionTarget, content: str) -> CVDocument:
        return self.dispatch(A.EditSuggestion(target, content))

    def reject_suggestion(self, target: A.SuggestionTarget) -> CVDocument:
        return self.dispatch(A.RejectSuggestion(target))
