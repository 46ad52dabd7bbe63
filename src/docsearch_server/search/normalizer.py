"""
Text Normalization

Cleans raw extracted text before it is stored and handed to the index.

Steps (in order)
----------------
1. Strip ASCII control characters except newline, tab and carriage return.
2. Normalize CRLF / CR line endings to LF.
3. Collapse whitespace runs to a single space.
4. Collapse 3+ consecutive newlines to exactly two.
5. Trim.

Control characters are removed before whitespace is collapsed so the result
is a fixed point: normalize(normalize(s)) == normalize(s).
"""

from __future__ import annotations

import re

from ..core.errors import UnsupportedContentError


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_ANY_WHITESPACE = re.compile(r"\s+")
_HORIZONTAL_WHITESPACE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" ?\n ?")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class TextNormalizer:
    """
    Normalizes extracted document text.

    With ``preserve_line_breaks`` left off, every whitespace run (newlines
    included) becomes one space and the output is a single line. Turning it
    on collapses only horizontal whitespace so paragraph breaks survive.
    """

    def __init__(self, preserve_line_breaks: bool = False) -> None:
        self.preserve_line_breaks = preserve_line_breaks

    def normalize(self, text: str) -> str:
        if not isinstance(text, str):
            raise UnsupportedContentError(
                f"Cannot normalize non-text content of type {type(text).__name__}"
            )

        if not text:
            return ""

        text = _CONTROL_CHARS.sub("", text)
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        if self.preserve_line_breaks:
            text = _HORIZONTAL_WHITESPACE.sub(" ", text)
            text = _SPACE_AROUND_NEWLINE.sub("\n", text)
        else:
            text = _ANY_WHITESPACE.sub(" ", text)

        text = _EXCESS_NEWLINES.sub("\n\n", text)

        return text.strip()


def normalize_text(text: str) -> str:
    """Normalize with the default (single-line) policy."""
    return TextNormalizer().normalize(text)
