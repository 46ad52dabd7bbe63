from datetime import datetime, timedelta, timezone

import pytest

from docsearch_server.core.errors import InvalidSortModeError
from docsearch_server.search.models import SearchResult, SortMode
from docsearch_server.search.sorting import ResultSorter, sort_results

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def result(id, score=0.5, title="T", size=100, days=0):
    return SearchResult(
        id=id,
        title=title,
        snippet="...",
        file_type="txt",
        file_size=size,
        formatted_file_size=f"{size} B",
        created_at=T0 + timedelta(days=days),
        score=score,
    )


def ids(results):
    return [r.id for r in results]


def test_relevance_is_default_and_descending():
    results = [result(1, 0.2), result(2, 0.9), result(3, 0.5)]
    assert ids(sort_results(results)) == [2, 3, 1]


@pytest.mark.parametrize(
    "mode, expected",
    [
        (SortMode.DATE_DESC, [3, 1, 2]),
        (SortMode.DATE_ASC, [2, 1, 3]),
        (SortMode.TITLE_ASC, [2, 3, 1]),
        (SortMode.TITLE_DESC, [1, 3, 2]),
        (SortMode.SIZE_DESC, [1, 2, 3]),
        (SortMode.SIZE_ASC, [3, 2, 1]),
    ],
)
def test_modes(mode, expected):
    results = [
        result(1, title="Zeta", size=300, days=5),
        result(2, title="Alpha", size=200, days=1),
        result(3, title="Mu", size=100, days=9),
    ]
    assert ids(sort_results(results, mode)) == expected


@pytest.mark.parametrize("mode", list(SortMode))
def test_equal_keys_keep_input_order(mode):
    results = [result(i) for i in range(1, 6)]
    assert ids(sort_results(results, mode)) == [1, 2, 3, 4, 5]


def test_input_is_not_mutated():
    results = [result(1, 0.1), result(2, 0.9)]
    ResultSorter().sort(results, SortMode.RELEVANCE)
    assert ids(results) == [1, 2]


def test_parse_defaults_to_relevance():
    assert SortMode.parse(None) is SortMode.RELEVANCE
    assert SortMode.parse("") is SortMode.RELEVANCE
    assert SortMode.parse("size_asc") is SortMode.SIZE_ASC


def test_parse_rejects_unknown_mode():
    with pytest.raises(InvalidSortModeError):
        SortMode.parse("popularity")
