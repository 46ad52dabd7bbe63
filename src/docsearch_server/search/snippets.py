"""
Snippet Generation

Produces a bounded excerpt of document content anchored just before the
earliest query-term match, with every term occurrence wrapped in
``<mark>...</mark>``.

Highlighting Policy
-------------------
All terms are matched in a single left-to-right pass using one alternation
pattern with the longest terms first. At any position the longest matching
term wins, and matched spans never overlap, so markup is never nested or
applied twice (e.g. terms ``["Lara", "Laravel"]`` on "Laraveling" produce
``<mark>Laravel</mark>ing``).
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence

DEFAULT_SNIPPET_LENGTH = 200
DEFAULT_CONTEXT_CHARS = 50
ELLIPSIS = "..."
MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"


def _distinct_terms(terms: Sequence[str]) -> List[str]:
    seen = set()
    distinct = []
    for term in terms:
        key = term.lower()
        if term and key not in seen:
            seen.add(key)
            distinct.append(term)
    return distinct


def build_highlight_pattern(terms: Sequence[str]) -> Optional[Pattern[str]]:
    """
    Compile a case-insensitive pattern matching any of the terms,
    longest alternatives first. Returns None when there is nothing to match.
    """
    distinct = _distinct_terms(terms)
    if not distinct:
        return None

    ordered = sorted(distinct, key=len, reverse=True)
    return re.compile("|".join(re.escape(t) for t in ordered), re.IGNORECASE)


def highlight(text: str, terms: Sequence[str]) -> str:
    """
    Wrap every occurrence of any term in ``text`` with mark tags,
    preserving the casing found in ``text``.
    """
    pattern = build_highlight_pattern(terms)
    if pattern is None:
        return text

    return pattern.sub(lambda m: f"{MARK_OPEN}{m.group(0)}{MARK_CLOSE}", text)


def generate_snippet(
    content: str,
    terms: Sequence[str],
    max_length: int = DEFAULT_SNIPPET_LENGTH,
    context: int = DEFAULT_CONTEXT_CHARS,
) -> str:
    """
    Build a highlighted excerpt of ``content`` for the given query terms.

    Parameters
    ----------
    content : str
        Normalized document text.
    terms : Sequence[str]
        Query terms as produced by ``extract_terms``.
    max_length : int
        Number of content characters in the excerpt (before markup).
    context : int
        Characters kept before the earliest match.

    Returns
    -------
    str
        The excerpt, always terminated with ``"..."``.
    """
    if not terms:
        return content[:max_length] + ELLIPSIS

    # Offsets come from the original text; lower() may change its length
    matches = (
        re.search(re.escape(term), content, re.IGNORECASE)
        for term in terms
        if term
    )
    positions = [m.start() for m in matches if m is not None]

    if not positions:
        return content[:max_length] + ELLIPSIS

    start = max(0, min(positions) - context)
    excerpt = content[start:start + max_length]

    return highlight(excerpt, terms) + ELLIPSIS


class SnippetGenerator:
    """Snippet generation bound to configured length and context."""

    def __init__(
        self,
        max_length: int = DEFAULT_SNIPPET_LENGTH,
        context: int = DEFAULT_CONTEXT_CHARS,
    ) -> None:
        self.max_length = max_length
        self.context = context

    def generate(self, content: str, terms: Sequence[str]) -> str:
        return generate_snippet(content, terms, self.max_length, self.context)
