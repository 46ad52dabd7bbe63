"""
Full-Text Index Engine

PostgreSQL ``tsvector`` based storage and candidate retrieval. This is the
black-box engine the search core sits on: it stores a document's normalized
text per workspace and returns tenant-scoped candidate ids for a query.
Snippets, scoring and final ordering are the caller's job.

Every statement issued here is filtered on ``workspace_id``.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Tuple

from sqlalchemy import select, delete, func, literal, cast
from sqlalchemy.dialects.postgresql import REGCONFIG, insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db.models import SearchIndexEntry
from .models import SearchFilters


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class IndexEngineError(RuntimeError):
    """Raised when the underlying full-text engine rejects an operation."""


# ---------------------------------------------------------------------
# Engine Interface
# ---------------------------------------------------------------------

class SearchIndexEngine(Protocol):
    """
    Operations the search core needs from a full-text engine.
    """

    async def index_document(
        self,
        workspace_id: int,
        document_id: int,
        title: str,
        content: str,
        file_type: str,
        created_at: Optional[datetime] = None,
    ) -> None: ...

    async def remove_from_index(self, workspace_id: int, document_id: int) -> int: ...

    async def remove_many(self, workspace_id: int, document_ids: Sequence[int]) -> int: ...

    async def query_index(
        self,
        workspace_id: int,
        query: str,
        filters: Optional[SearchFilters] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[int], int]: ...

    async def index_size(self, workspace_id: int) -> int: ...


# ---------------------------------------------------------------------
# PostgreSQL Implementation
# ---------------------------------------------------------------------

class PostgresFullTextIndex:
    """
    Full-text engine backed by a ``search_index_entry`` table with a weighted
    ``tsvector`` column (title weight A, content weight B).
    """

    def __init__(self, session: AsyncSession, language: Optional[str] = None) -> None:
        """
        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        language : Optional[str]
            Text search configuration. Defaults to settings.search_language.
        """
        self._session = session
        self._language = language or settings.search_language

    def _regconfig(self):
        return cast(literal(self._language), REGCONFIG)

    def _vector(self, title: str, content: str):
        lang = self._regconfig()
        title_vec = func.setweight(func.to_tsvector(lang, func.coalesce(title, "")), "A")
        content_vec = func.setweight(func.to_tsvector(lang, func.coalesce(content, "")), "B")
        return title_vec.op("||")(content_vec)

    async def index_document(
        self,
        workspace_id: int,
        document_id: int,
        title: str,
        content: str,
        file_type: str,
        created_at: Optional[datetime] = None,
    ) -> None:
        """
        Insert or replace the index entry for a document.

        Raises
        ------
        IndexEngineError
            If the database rejects the write.
        """
        stmt = pg_insert(SearchIndexEntry).values(
            workspace_id=workspace_id,
            document_id=document_id,
            title=title,
            content=content,
            file_type=file_type,
            document_created_at=created_at,
            search_vector=self._vector(title, content),
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_index_workspace_document",
            set_={
                "title": stmt.excluded.title,
                "content": stmt.excluded.content,
                "file_type": stmt.excluded.file_type,
                "document_created_at": stmt.excluded.document_created_at,
                "search_vector": stmt.excluded.search_vector,
            },
        )

        try:
            async with self._session.begin_nested():
                await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise IndexEngineError(
                f"Failed to write index entry: {type(exc).__name__}"
            ) from exc

    async def remove_from_index(self, workspace_id: int, document_id: int) -> int:
        stmt = delete(SearchIndexEntry).where(
            SearchIndexEntry.workspace_id == workspace_id,
            SearchIndexEntry.document_id == document_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def remove_many(self, workspace_id: int, document_ids: Sequence[int]) -> int:
        if not document_ids:
            return 0

        stmt = delete(SearchIndexEntry).where(
            SearchIndexEntry.workspace_id == workspace_id,
            SearchIndexEntry.document_id.in_(list(document_ids)),
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def query_index(
        self,
        workspace_id: int,
        query: str,
        filters: Optional[SearchFilters] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[int], int]:
        """
        Return one page of candidate document ids plus the total match count.

        Candidates are ordered by the engine's own ``ts_rank`` so pagination is
        deterministic; callers re-rank the page with their own scorer.
        """
        tsquery = func.websearch_to_tsquery(self._regconfig(), query)

        conditions = [
            SearchIndexEntry.workspace_id == workspace_id,
            SearchIndexEntry.search_vector.op("@@")(tsquery),
        ]

        if filters is not None:
            if filters.file_type:
                conditions.append(SearchIndexEntry.file_type.in_(filters.file_type))
            if filters.date_from is not None:
                conditions.append(SearchIndexEntry.document_created_at >= filters.date_from)
            if filters.date_to is not None:
                conditions.append(SearchIndexEntry.document_created_at <= filters.date_to)

        total_stmt = select(func.count()).select_from(SearchIndexEntry).where(*conditions)
        total = (await self._session.execute(total_stmt)).scalar() or 0

        rank = func.ts_rank(SearchIndexEntry.search_vector, tsquery)
        page_stmt = (
            select(SearchIndexEntry.document_id)
            .where(*conditions)
            .order_by(rank.desc(), SearchIndexEntry.document_id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(page_stmt)

        return [row[0] for row in result.all()], total

    async def index_size(self, workspace_id: int) -> int:
        """
        Approximate on-disk bytes used by a workspace's index entries.
        """
        stmt = select(
            func.coalesce(
                func.sum(
                    func.pg_column_size(SearchIndexEntry.search_vector)
                    + func.pg_column_size(SearchIndexEntry.content)
                    + func.pg_column_size(SearchIndexEntry.title)
                ),
                0,
            )
        ).where(SearchIndexEntry.workspace_id == workspace_id)
        result = await self._session.execute(stmt)
        return int(result.scalar() or 0)
