"""
Base interface for CV structurers.

Defines the contract for pluggable implementations of the upstream
structuring collaborator: raw CV text in, StructuredCVData out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..sources import StructuredCVData


class CVStructurer(ABC):
    """
    Abstract base class for CV structurers.

    Implementations turn raw CV text into cleaned, field-separated data.
    The normalizer trusts this output most, so implementations must only
    copy text that is present in the CV.
    """

    @abstractmethod
    def structure(self, cv_text: str) -> StructuredCVData:
        """
        Structure raw CV text.

        Args:
            cv_text: Plain CV text (pasted or read from an upload)

        Returns:
            StructuredCVData; empty lists when nothing could be extracted

        Raises:
            ValueError: If cv_text is empty
            RuntimeError: If the underlying service fails
        """
        ...
