"""
Search Service

Runs a workspace query end to end:

    raw query -> terms -> engine candidates -> stored documents
              -> snippet + score -> sort -> paginated page

The engine decides *which* documents match and in what page; scoring,
highlighting and final ordering within the page happen here.
"""

from __future__ import annotations

import logging
import math
import time
from typing import List, Optional, Sequence

from ..config import settings
from ..db.document_store import DocumentStore
from ..db.models import Document, Workspace
from .engine import SearchIndexEngine
from .models import (
    Pagination,
    SearchFilters,
    SearchPage,
    SearchResult,
    SortMode,
    WorkspaceSummary,
    format_bytes,
)
from .scoring import RelevanceScorer
from .snippets import SnippetGenerator
from .sorting import ResultSorter
from .terms import extract_terms

logger = logging.getLogger("docsearch.search")


def build_pagination(total: int, page: int, per_page: int, count: int) -> Pagination:
    """
    Page metadata for ``count`` results shown on ``page``.

    ``from``/``to`` are 1-based positions of the first and last result on
    the page, or None when the page is empty.
    """
    last_page = max(1, math.ceil(total / per_page))
    first = (page - 1) * per_page + 1 if count else None
    last = first + count - 1 if first is not None else None

    return Pagination(
        total=total,
        current_page=page,
        per_page=per_page,
        last_page=last_page,
        from_=first,
        to=last,
    )


class SearchService:
    """
    Workspace-scoped search orchestration.
    """

    def __init__(
        self,
        store: DocumentStore,
        engine: SearchIndexEngine,
        snippets: Optional[SnippetGenerator] = None,
        scorer: Optional[RelevanceScorer] = None,
        sorter: Optional[ResultSorter] = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._snippets = snippets or SnippetGenerator(
            settings.snippet_length, settings.snippet_context
        )
        self._scorer = scorer or RelevanceScorer()
        self._sorter = sorter or ResultSorter()

    # ------------------------------------------------------------------
    # Result Annotation
    # ------------------------------------------------------------------

    def build_result(self, document: Document, terms: Sequence[str]) -> SearchResult:
        return SearchResult(
            id=document.id,
            title=document.title,
            snippet=self._snippets.generate(document.content or "", terms),
            file_type=document.file_type,
            file_size=document.file_size or 0,
            formatted_file_size=format_bytes(document.file_size),
            original_filename=document.original_filename,
            created_at=document.created_at,
            score=self._scorer.score(document.title, document.content, terms),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search(
        self,
        workspace: Workspace,
        query: str,
        filters: Optional[SearchFilters] = None,
        sort: SortMode = SortMode.RELEVANCE,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> SearchPage:
        """
        Search one workspace.

        Parameters
        ----------
        workspace : Workspace
            Resolved tenant; no other workspace's documents can be returned.
        query : str
            Raw user query, passed to the engine as-is.
        filters : Optional[SearchFilters]
            File type and creation date narrowing.
        sort : SortMode
            Ordering applied to the page after scoring.
        page, per_page : int
            1-based page number and page size (clamped to settings.max_per_page).
        """
        started = time.perf_counter()

        page = max(1, page)
        per_page = per_page or settings.default_per_page
        per_page = max(1, min(per_page, settings.max_per_page))

        query = (query or "").strip()
        terms = extract_terms(query)

        results: List[SearchResult] = []
        total = 0

        if query:
            try:
                ids, total = await self._engine.query_index(
                    workspace.id,
                    query,
                    filters=filters,
                    limit=per_page,
                    offset=(page - 1) * per_page,
                )
            except Exception:
                logger.error(
                    "Search failed for workspace %s, query %r",
                    workspace.id,
                    query,
                )
                raise

            documents = await self._store.get_documents(workspace.id, ids)
            results = self._sorter.sort(
                [self.build_result(doc, terms) for doc in documents],
                sort,
            )

        elapsed = time.perf_counter() - started

        return SearchPage(
            results=results,
            pagination=build_pagination(total, page, per_page, len(results)),
            query=query,
            search_time=round(elapsed, 3),
            total_indexed=await self._store.count_indexed(workspace.id),
            workspace=WorkspaceSummary(
                id=workspace.id,
                name=workspace.name,
                slug=workspace.slug,
            ),
        )

    async def advanced_search(
        self,
        workspace: Workspace,
        query: str,
        filters: Optional[SearchFilters] = None,
        sort: SortMode = SortMode.RELEVANCE,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> SearchPage:
        """
        Same as ``search`` but echoes the applied filters and sort mode.
        """
        filters = filters or SearchFilters()
        result = await self.search(workspace, query, filters, sort, page, per_page)
        result.filters = filters
        result.sort = sort
        return result

    async def suggestions(
        self,
        workspace: Workspace,
        partial: str,
        limit: int = 5,
    ) -> List[str]:
        """
        Distinct titles of documents whose title or content contains ``partial``.
        """
        partial = (partial or "").strip()
        if not partial:
            return []

        return await self._store.suggest_titles(workspace.id, partial, limit)
