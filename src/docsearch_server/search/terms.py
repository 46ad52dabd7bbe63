"""
Query term extraction.
"""

from __future__ import annotations

import re
from typing import List

MIN_TERM_LENGTH = 2

_QUOTES = re.compile(r"[\"']")
_WHITESPACE = re.compile(r"\s+")


def extract_terms(query: str) -> List[str]:
    """
    Split a free-text query into search terms.

    Quote characters are removed, the rest is split on whitespace and terms
    shorter than two characters are dropped. Order follows first occurrence
    and duplicates are kept.
    """
    if not query:
        return []

    stripped = _QUOTES.sub("", query).strip()
    if not stripped:
        return []

    return [
        term
        for term in _WHITESPACE.split(stripped)
        if len(term) >= MIN_TERM_LENGTH
    ]
