"""
Relevance Scoring

A cheap term-frequency heuristic computed outside the index engine:
title matches count double, and the weighted total is expressed per 1000
characters of content, then clamped to [0.0, 1.0].

This favors short, keyword-dense documents. Any content under 1000
characters with a couple of matches saturates at 1.0, so the score is a
coarse tiebreaker rather than a principled ranking function.
"""

from __future__ import annotations

from typing import Sequence

TITLE_WEIGHT = 2.0
CONTENT_WEIGHT = 1.0


def count_occurrences(haystack: str, term: str) -> int:
    """Case-insensitive, non-overlapping occurrence count."""
    if not term:
        return 0
    return haystack.lower().count(term.lower())


class RelevanceScorer:

    def __init__(
        self,
        title_weight: float = TITLE_WEIGHT,
        content_weight: float = CONTENT_WEIGHT,
    ) -> None:
        self.title_weight = title_weight
        self.content_weight = content_weight

    def raw_score(self, title: str, content: str, terms: Sequence[str]) -> float:
        title = title or ""
        content = content or ""
        return sum(
            count_occurrences(title, term) * self.title_weight
            + count_occurrences(content, term) * self.content_weight
            for term in terms
        )

    def score(self, title: str, content: str, terms: Sequence[str]) -> float:
        if not terms:
            return 0.0

        raw = self.raw_score(title, content, terms)
        length = len(content or "")

        if length == 0:
            return 1.0 if raw > 0 else 0.0

        normalized = raw / (length / 1000)
        return min(1.0, max(0.0, normalized))


def score(title: str, content: str, terms: Sequence[str]) -> float:
    """Score with the default weights."""
    return RelevanceScorer().score(title, content, terms)
