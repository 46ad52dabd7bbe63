import pytest

from docsearch_server.search.terms import extract_terms


def test_splits_on_whitespace():
    assert extract_terms("laravel framework") == ["laravel", "framework"]


def test_removes_quotes():
    assert extract_terms('"exact phrase" it\'s') == ["exact", "phrase", "its"]


def test_drops_short_terms():
    assert extract_terms("a an I of the x") == ["an", "of", "the"]


def test_keeps_duplicates_in_order():
    assert extract_terms("php PHP php") == ["php", "PHP", "php"]


@pytest.mark.parametrize("query", ["", "   ", "\"\"", "' '", "a b c"])
def test_empty_results(query):
    assert extract_terms(query) == []


@pytest.mark.parametrize(
    "query",
    ['search "quoted words" here', "  multiple\t\twhitespace \n runs ", "it's x y zz"],
)
def test_terms_have_no_quotes_and_min_length(query):
    for term in extract_terms(query):
        assert len(term) >= 2
        assert '"' not in term and "'" not in term
