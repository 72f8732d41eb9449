# src/extraction/document_reader.py — v1
"""Read text, page count and embedded metadata from submitted files.

PDF via PyMuPDF (fitz), DOCX via python-docx. Callers pass the raw bytes;
each call opens its own document handle.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Word documents carry no page layout; estimate pages from word count.
_WORDS_PER_PAGE = 500


class UnsupportedFormatError(ValueError):
    """Raised when no reader is available for a file type."""


@dataclass
class DocumentContent:
    """Text and layout facts read from one document."""

    text: str
    page_count: int
    file_type: str
    title: str = ""
    author: str = ""
    pages: list[str] = field(default_factory=list)

    @property
    def has_text_layer(self) -> bool:
        return bool(self.text.strip())


def detect_file_type(file_name: str) -> str:
    """Upper-case extension without dot (e.g. 'PDF'), or '' when absent."""
    return Path(file_name).suffix.lstrip(".").upper()


def read_document(data: bytes, file_name: str) -> DocumentContent:
    """Read a document from bytes, dispatching on the file extension.

    Raises:
        UnsupportedFormatError: If the type has no reader.
        ValueError: If the bytes cannot be parsed.
    """
    file_type = detect_file_type(file_name)
    if file_type == "PDF":
        return read_pdf(data)
    if file_type == "DOCX":
        return read_docx(data)
    raise UnsupportedFormatError(f"No text reader for file type {file_type or '(none)'!r}")


def read_pdf(data: bytes) -> DocumentContent:
    """Extract per-page text and metadata from a PDF."""
    import fitz  # PyMuPDF

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise ValueError(f"Unreadable PDF: {exc}") from exc

    try:
        pages = [page.get_text("text") for page in doc]
        metadata = doc.metadata or {}
        content = DocumentContent(
            text="\n".join(pages).strip(),
            page_count=doc.page_count,
            file_type="PDF",
            title=(metadata.get("title") or "").strip(),
            author=(metadata.get("author") or "").strip(),
            pages=pages,
        )
    finally:
        doc.close()

    logger.debug(
        "Read PDF: %d pages, %d chars, text layer=%s",
        content.page_count, len(content.text), content.has_text_layer,
    )
    return content


def read_docx(data: bytes) -> DocumentContent:
    """Extract paragraph text and core properties from a DOCX file."""
    import docx

    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as exc:
        raise ValueError(f"Unreadable DOCX: {exc}") from exc

    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    text = "\n".join(paragraphs)
    word_count = len(text.split())
    props = document.core_properties
    return DocumentContent(
        text=text,
        page_count=max(1, -(-word_count // _WORDS_PER_PAGE)) if word_count else 0,
        file_type="DOCX",
        title=(props.title or "").strip(),
        author=(props.author or "").strip(),
        pages=[text],
    )
