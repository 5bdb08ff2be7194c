"""
DOCX-based CV renderer implementation.

Renders a CV document to Word .docx files using docxtpl templates.
"""

from __future__ import annotations

from pathlib import Path

from docxtpl import DocxTemplate

from ..logging_utils import LOG
from ..models import CVDocument
from ..shared import sanitize_for_xml_in_obj
from .base import CVRenderer
from .context import build_render_context


class DocxCVRenderer(CVRenderer):
    """
    CV renderer for Microsoft Word .docx files.

    The document is flattened with build_render_context(), sanitized for
    XML and rendered with autoescaping.
    """

    def render(self, document: CVDocument, template_path: Path, output_path: Path) -> Path:
        template_path = Path(template_path)
        output_path = Path(output_path)
        if not template_path.exists():
            raise FileNotFoundError(f"Template file not found: {template_path}")

        if not template_path.is_file() or template_path.suffix.lower() != ".docx":
            raise ValueError(f"Template must be a .docx file: {template_path}")

        context = sanitize_for_xml_in_obj(build_render_context(document))

        tpl = DocxTemplate(str(template_path))
        tpl.render(context, autoescape=True)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        tpl.save(str(output_path))
        LOG.info("Rendered %s (%d experience entries)", output_path.name, len(context["experience"]))
        return output_path
