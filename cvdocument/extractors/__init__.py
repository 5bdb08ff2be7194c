"""
CV text extraction and structuring.

This module provides the heuristic text parser, the DOCX text reader and
pluggable structurers for the upstream structuring step.
"""

from .base import CVStructurer
from .docx_utils import read_docx_text
from .openai_structurer import OpenAICVStructurer
from .text_parser import find_date_range, parse_cv_text

__all__ = [
    "CVStructurer",
    "OpenAICVStructurer",
    "find_date_range",
    "parse_cv_text",
    "read_docx_text",
]
