"""
Result ordering.

Python's sort is stable, including with ``reverse=True``, so results with
equal keys keep their incoming relative order in every mode.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Sequence, Tuple

from .models import SearchResult, SortMode


_SORT_KEYS: Dict[SortMode, Tuple[Callable[[SearchResult], Any], bool]] = {
    SortMode.RELEVANCE: (lambda r: r.score, True),
    SortMode.DATE_DESC: (lambda r: r.created_at, True),
    SortMode.DATE_ASC: (lambda r: r.created_at, False),
    SortMode.TITLE_ASC: (lambda r: r.title, False),
    SortMode.TITLE_DESC: (lambda r: r.title, True),
    SortMode.SIZE_DESC: (lambda r: r.file_size, True),
    SortMode.SIZE_ASC: (lambda r: r.file_size, False),
}


def sort_results(
    results: Sequence[SearchResult],
    mode: SortMode = SortMode.RELEVANCE,
) -> List[SearchResult]:
    """
    Return a new list ordered by ``mode``. The input sequence is not mutated.

    ``mode`` must already be a valid SortMode; string validation happens at
    the request boundary (see ``SortMode.parse``).
    """
    key, reverse = _SORT_KEYS[SortMode(mode)]
    return sorted(results, key=key, reverse=reverse)


class ResultSorter:

    def sort(
        self,
        results: Sequence[SearchResult],
        mode: SortMode = SortMode.RELEVANCE,
    ) -> List[SearchResult]:
        return sort_results(results, mode)
