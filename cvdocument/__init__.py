# cvdocument/__init__.py

from .dates import format_date_for_display, normalize_end_date, parse_date, sort_experience
from .editor import DocumentEditor, SuggestionTarget, reduce
from .extractors import parse_cv_text, read_docx_text
from .models import CVDocument, create_empty_document, dumps_document, loads_document
from .normalizer import normalize
from .persistence import DocumentStore, InMemoryDocumentStore, JsonFileDocumentStore, document_key
from .renderers import DocxCVRenderer, build_render_context
from .sources import ParsedCVData, RawCVData, StructuredCVData
from .verification import verify_document

__all__ = [
    "CVDocument",
    "DocumentEditor",
    "DocumentStore",
    "DocxCVRenderer",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "ParsedCVData",
    "RawCVData",
    "StructuredCVData",
    "SuggestionTarget",
    "build_render_context",
    "create_empty_document",
    "document_key",
    "dumps_document",
    "format_date_for_display",
    "loads_document",
    "normalize",
    "normalize_end_date",
    "parse_cv_text",
    "parse_date",
    "read_docx_text",
    "reduce",
    "sort_experience",
    "verify_document",
]
