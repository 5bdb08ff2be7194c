"""
Persistence port for CV documents.

The editor talks to storage only through DocumentStore: get/set of a
serialized document by key. No transactions; last write wins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional
from urllib.parse import quote

from .logging_utils import LOG

DOCUMENT_KEY_PREFIX = "cv_doc_"


def document_key(job_context_id: str) -> str:
    return f"{DOCUMENT_KEY_PREFIX}{job_context_id}"


class DocumentStore(ABC):
    """
    Abstract key-value store for serialized documents.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Return the serialized document stored under key, or None.
        """
        ...

    @abstractmethod
    def set(self, key: str, serialized: str) -> None:
        """
        Store a serialized document under key, replacing any previous value.

        Raises:
            OSError: (or another storage error) if the write fails
        """
        ...


class InMemoryDocumentStore(DocumentStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, serialized: str) -> None:
        self._data[key] = serialized

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)


class JsonFileDocumentStore(DocumentStore):
    """
    One UTF-8 JSON file per key inside a directory.
    """

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """Percent-encode key into a file name; distinct keys never share a file."""
        return self._directory / (quote(key, safe="") + ".json")

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            LOG.warning("Failed to read %s: %s", path, e)
            return None

    def set(self, key: str, serialized: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(serialized, encoding="utf-8")
        tmp.replace(path)
        LOG.debug("Wrote %s (%d chars)", path, len(serialized))


__all__ = [
    "DOCUMENT_KEY_PREFIX",
    "DocumentStore",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "document_key",
]
