"""
Low-level DOCX / WordprocessingML helpers.

This module reads plain CV text out of an uploaded .docx:
- reading the Word document part
- iterating body paragraphs (tables included)
- detecting list paragraphs and paragraph styles
- converting Word runs into plain text

It contains no CV-specific logic; the text parser and the structurer work
on the text it returns.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Tuple
from zipfile import BadZipFile, ZipFile

from lxml import etree

from ..logging_utils import LOG
from ..shared import normalize_text_for_processing

XML_PARSER = etree.XMLParser(recover=True, huge_tree=True)

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
DOCX_NS = {"w": W_NS}

BULLET_PREFIX = "• "


def iter_document_paragraphs(docx_path: Path) -> Iterator[Tuple[str, bool, str]]:
    """
    Yield (text, is_bullet, style) for each paragraph in word/document.xml body.
    """
    with ZipFile(docx_path) as z:
        xml_bytes = z.read("word/document.xml")
    root = etree.fromstring(xml_bytes, XML_PARSER)

    for p in root.findall(".//w:body//w:p", DOCX_NS):
        text = extract_text_from_w_p(p)
        if not text:
            continue
        yield text, _p_is_bullet(p), _p_style(p)


def extract_text_from_w_p(p: etree._Element) -> str:
    parts: List[str] = []
    for node in p.iter():
        tag = etree.QName(node).localname
        if tag == "t" and node.text:
            parts.append(node.text)
        elif tag in ("noBreakHyphen", "softHyphen"):
            parts.append("-")
        elif tag in ("br", "cr"):
            parts.append("\n")
        elif tag == "tab":
            parts.append("\t")
    return normalize_text_for_processing("".join(parts)).strip()


def _p_style(p: etree._Element) -> str:
    pstyle = p.find(".//w:pPr/w:pStyle", DOCX_NS)
    if pstyle is None:
        return ""
    return pstyle.get(f"{{{W_NS}}}val", "") or ""


def _p_is_bullet(p: etree._Element) -> bool:
    # Word list formatting is usually in <w:numPr>
    if p.find(".//w:pPr/w:numPr", DOCX_NS) is not None:
        return True
    # Some templates use paragraph styles for lists; treat common list styles as bullets
    style = _p_style(p).lower()
    if style.startswith("list") or "bullet" in style or "number" in style:
        return True
    return False


def read_docx_text(docx_path: Path) -> str:
    """
    Read a .docx upload as plain CV text, one paragraph per line.

    List paragraphs are prefixed with a bullet glyph so the text parser can
    tell bullets from narrative.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a readable .docx
    """
    docx_path = Path(docx_path)
    if not docx_path.exists():
        raise FileNotFoundError(f"Document not found: {docx_path}")
    if not docx_path.is_file():
        raise ValueError(f"Path must be a file: {docx_path}")

    lines: List[str] = []
    try:
        for text, is_bullet, _style in iter_document_paragraphs(docx_path):
            for i, line in enumerate(text.split("\n")):
                line = line.strip()
                if not line:
                    continue
                lines.append(BULLET_PREFIX + line if is_bullet and i == 0 else line)
    except (BadZipFile, KeyError) as e:
        raise ValueError(f"Not a readable .docx file: {docx_path} ({e})") from e

    LOG.debug("Read %d lines from %s", len(lines), docx_path.name)
    return "\n".join(lines)
