import pytest
from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql

from docsearch_server.db.document_store import DocumentStore, escape_like


class RecordingSession:
    """Captures statements instead of running them."""

    def __init__(self):
        self.statements = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        result = MagicMock()
        result.all.return_value = []
        result.scalars.return_value.first.return_value = None
        return result


def compiled(stmt):
    return stmt.compile(dialect=postgresql.dialect())


@pytest.mark.parametrize(
    "raw, escaped",
    [
        ("laravel", "laravel"),
        ("_", "\\_"),
        ("100%", "100\\%"),
        ("a\\b", "a\\\\b"),
    ],
)
def test_escape_like(raw, escaped):
    assert escape_like(raw) == escaped


async def test_suggest_titles_matches_wildcards_literally():
    session = RecordingSession()

    await DocumentStore(session).suggest_titles(1, "_")

    sql = compiled(session.statements[0])
    assert "ESCAPE" in str(sql)
    assert "%\\_%" in sql.params.values()


async def test_get_project_is_scoped_to_workspace():
    session = RecordingSession()

    assert await DocumentStore(session).get_project(7, 555) is None

    sql = compiled(session.statements[0])
    assert "project.workspace_id" in str(sql)
    assert 7 in sql.params.values()
    assert 555 in sql.params.values()
