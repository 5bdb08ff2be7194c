"""
CV rendering interfaces and implementations.

This module provides the template context builder and pluggable renderers.
"""

from .base import CVRenderer
from .context import build_render_context
from .docx_renderer import DocxCVRenderer

__all__ = [
    "CVRenderer",
    "DocxCVRenderer",
    "build_render_context",
]
