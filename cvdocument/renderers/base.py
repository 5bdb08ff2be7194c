"""
Base interface for CV renderers.

Defines the contract for pluggable CV export implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..models import CVDocument


class CVRenderer(ABC):
    """
    Abstract base class for CV renderers.

    Implementations render a CVDocument to an output format using a
    template. Experience is always exported newest first, whatever order
    the document was handed over in.
    """

    @abstractmethod
    def render(self, document: CVDocument, template_path: Path, output_path: Path) -> Path:
        """
        Render a document to an output file using the specified template.

        Args:
            document: The CV document to export
            template_path: Path to the template file to use for rendering
            output_path: Path where the rendered output should be saved

        Returns:
            Path to the rendered output file

        Raises:
            FileNotFoundError: If the template file does not exist
            ValueError: If the template is not usable by this renderer
        """
        pass
