"""
Index Lifecycle Tracking

Drives documents in and out of a workspace's full-text index and reports
aggregate index health.

Document Membership
-------------------
Each document is either Unindexed (``indexed_at is None``) or Indexed.

- Unindexed -> Indexed : successful ``index_document``
- Indexed -> Unindexed : ``remove_document`` (delete, content invalidation)
                         or the removal phase of ``rebuild_index``

Failure Policy
--------------
- ``index_document`` on its own raises ``IndexWriteError``.
- ``bulk_index`` and ``rebuild_index`` log each failure, skip the document
  and keep going; only aggregate counts are returned.

Counts are recomputed from the document store on every call; nothing is
cached between requests.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List

from ..config import settings
from ..core.errors import IndexWriteError
from ..db.document_store import DocumentStore
from ..db.models import Document, Workspace
from .engine import SearchIndexEngine
from .models import HealthStatus, IndexStatus, RebuildResult, format_bytes

logger = logging.getLogger("docsearch.lifecycle")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------
# Health Classification
# ---------------------------------------------------------------------

def classify_health(
    indexed: int,
    total: int,
    healthy_ratio: float = 0.95,
    warning_ratio: float = 0.80,
) -> HealthStatus:
    """
    Classify index coverage for a workspace.

    An empty workspace is healthy. Otherwise the indexed/total ratio must
    reach ``healthy_ratio`` to be healthy and ``warning_ratio`` to be a
    warning; anything lower is an error.
    """
    if total == 0:
        return "healthy"

    ratio = indexed / total

    if ratio >= healthy_ratio:
        return "healthy"
    if ratio >= warning_ratio:
        return "warning"
    return "error"


# ---------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------

class IndexLifecycleTracker:
    """
    Coordinates the document store and the index engine for one workspace
    at a time.
    """

    def __init__(
        self,
        store: DocumentStore,
        engine: SearchIndexEngine,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Parameters
        ----------
        store : DocumentStore
            Tenant-scoped document persistence.
        engine : SearchIndexEngine
            Full-text engine receiving index writes.
        clock : Callable[[], datetime]
            Source of "now" for indexed timestamps.
        """
        self._store = store
        self._engine = engine
        self._clock = clock

    # ------------------------------------------------------------------
    # Single Document
    # ------------------------------------------------------------------

    async def index_document(self, workspace: Workspace, document: Document) -> None:
        """
        Hand one document to the engine and mark it indexed.

        Raises
        ------
        IndexWriteError
            If the engine rejects the write. ``indexed_at`` is left untouched.
        """
        if document.workspace_id != workspace.id:
            raise IndexWriteError(
                f"Document {document.id} does not belong to workspace {workspace.id}",
                document_id=document.id,
            )

        try:
            await self._engine.index_document(
                workspace_id=workspace.id,
                document_id=document.id,
                title=document.title,
                content=document.content,
                file_type=document.file_type,
                created_at=document.created_at,
            )
        except Exception as exc:
            logger.error(
                "Failed to index document %s in workspace %s: %s",
                document.id,
                workspace.id,
                exc,
            )
            raise IndexWriteError(
                f"Index engine rejected document {document.id}: {type(exc).__name__}",
                document_id=document.id,
            ) from exc

        now = self._clock()
        document.indexed_at = now
        workspace.last_indexed_at = now
        await self._store.flush()

        logger.info(
            "Document %s indexed in workspace %s", document.id, workspace.id
        )

    async def remove_document(self, workspace: Workspace, document: Document) -> None:
        """
        Remove a document's entry from the engine and mark it unindexed.
        """
        await self._engine.remove_from_index(workspace.id, document.id)
        document.indexed_at = None
        await self._store.flush()

    # ------------------------------------------------------------------
    # Batch Operations
    # ------------------------------------------------------------------

    async def _index_batch(
        self,
        workspace: Workspace,
        documents: List[Document],
        operation: str,
    ) -> List[int]:
        """
        Index each document independently. Returns ids that failed.
        """
        failed: List[int] = []

        for document in documents:
            try:
                await self.index_document(workspace, document)
            except IndexWriteError as exc:
                logger.warning(
                    "Skipping document %s during %s of workspace %s: %s",
                    exc.document_id,
                    operation,
                    workspace.id,
                    exc.message,
                )
                failed.append(document.id)

        return failed

    async def bulk_index(self, workspace: Workspace) -> int:
        """
        Index every document of the workspace that is not indexed yet.

        Returns
        -------
        int
            Number of newly indexed documents.
        """
        pending = await self._store.list_unindexed_documents(workspace.id)
        failed = await self._index_batch(workspace, pending, "bulk index")

        indexed = len(pending) - len(failed)
        logger.info(
            "Bulk index for workspace %s: %d indexed, %d failed",
            workspace.id,
            indexed,
            len(failed),
        )
        return indexed

    async def rebuild_index(self, workspace: Workspace) -> RebuildResult:
        """
        Remove every workspace document from the index, then index all of
        them again from scratch.
        """
        started = time.perf_counter()

        documents = await self._store.list_all_documents(workspace.id)

        await self._engine.remove_many(workspace.id, [d.id for d in documents])
        for document in documents:
            document.indexed_at = None
        await self._store.flush()

        failed = await self._index_batch(workspace, documents, "rebuild")

        workspace.last_indexed_at = self._clock()
        await self._store.flush()

        elapsed = time.perf_counter() - started
        result = RebuildResult(
            total_documents=len(documents),
            indexed_documents=len(documents) - len(failed),
            processing_time=round(elapsed, 3),
            failed_document_ids=failed,
        )

        logger.info(
            "Search index rebuilt for workspace %s: total=%d indexed=%d time=%.3fs",
            workspace.id,
            result.total_documents,
            result.indexed_documents,
            elapsed,
        )
        return result

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def get_index_status(self, workspace: Workspace) -> IndexStatus:
        total = await self._store.count_documents(workspace.id)
        indexed = await self._store.count_indexed(workspace.id)
        last_updated = await self._store.last_indexed_at(workspace.id)
        size = await self._engine.index_size(workspace.id)

        return IndexStatus(
            total_documents=total,
            indexed_documents=indexed,
            unindexed_documents=total - indexed,
            index_size=size,
            formatted_index_size=format_bytes(size),
            last_updated=last_updated,
            index_health=classify_health(
                indexed,
                total,
                settings.health_healthy_ratio,
                settings.health_warning_ratio,
            ),
        )
