"""
Text Extraction

Turns uploaded file bytes into raw text ready for normalization.

Supported Formats
-----------------
- ``pdf``  : page text via pypdf
- ``docx`` : paragraphs and table cells via python-docx
- ``doc``  : accepted and read through python-docx; legacy binary Word files
             that python-docx cannot open are rejected
- ``txt``  : UTF-8, undecodable bytes replaced
"""

from __future__ import annotations

import io
import logging
from pathlib import PurePath
from typing import Callable, Dict, List, Optional

from docx import Document as DocxDocument
from pypdf import PdfReader

from .config import settings
from .core.errors import UnsupportedContentError

logger = logging.getLogger("docsearch.extraction")


def file_extension(filename: str) -> str:
    """Lowercased extension without the dot, or ``""``."""
    return PurePath(filename or "").suffix.lstrip(".").lower()


def generate_title(filename: str) -> str:
    """
    Derive a display title from a filename.

    ``"my-important-document_final.txt" -> "My Important Document Final"``
    """
    stem = PurePath(filename or "").stem
    words = stem.replace("_", " ").replace("-", " ").split()
    return " ".join(word.capitalize() for word in words) or "Untitled"


# ---------------------------------------------------------------------
# Format Readers
# ---------------------------------------------------------------------

def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


def _extract_word(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))
    parts = [p.text for p in doc.paragraphs if p.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    return "\n".join(parts)


def _extract_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


_READERS: Dict[str, Callable[[bytes], str]] = {
    "pdf": _extract_pdf,
    "doc": _extract_word,
    "docx": _extract_word,
    "txt": _extract_txt,
}


# ---------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------

class TextExtractor:
    """
    Validates uploads against the configured types and size limit and
    extracts their text.
    """

    def __init__(
        self,
        supported_types: Optional[List[str]] = None,
        max_file_size: Optional[int] = None,
    ) -> None:
        self.supported_types = [
            t for t in (supported_types or settings.supported_types) if t in _READERS
        ]
        self.max_file_size = max_file_size or settings.max_upload_bytes

    def is_supported(self, file_type: str) -> bool:
        return (file_type or "").lower() in self.supported_types

    def validate(self, filename: str, size: int) -> str:
        """
        Check type and size of an upload. Returns the file type.

        Raises
        ------
        UnsupportedContentError
            If the extension is not supported or the file is too large.
        """
        file_type = file_extension(filename)

        if not self.is_supported(file_type):
            raise UnsupportedContentError(
                f"Unsupported file type '{file_type or 'unknown'}'. "
                f"Supported types: {', '.join(self.supported_types)}"
            )

        if size > self.max_file_size:
            raise UnsupportedContentError(
                f"File too large: {size} bytes (maximum {self.max_file_size})"
            )

        return file_type

    def extract(self, data: bytes, file_type: str) -> str:
        """
        Extract raw text from file bytes.

        Raises
        ------
        UnsupportedContentError
            If the type is unsupported, the file cannot be parsed or it
            contains no text.
        """
        file_type = (file_type or "").lower()
        if not self.is_supported(file_type):
            raise UnsupportedContentError(f"Unsupported file type '{file_type}'")

        try:
            text = _READERS[file_type](data)
        except Exception as exc:
            logger.error("Text extraction failed for %s file: %s", file_type, exc)
            raise UnsupportedContentError(
                f"Could not read {file_type} file"
            ) from exc

        if not text.strip():
            raise UnsupportedContentError(f"No text content found in {file_type} file")

        return text
