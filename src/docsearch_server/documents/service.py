"""
Document Service

Upload, update and delete workflows for workspace documents. Each workflow
keeps the document record and its index entry consistent through the
lifecycle tracker.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from ..config import settings
from ..core.errors import DocumentNotFoundError, IndexWriteError, ProjectNotFoundError
from ..db.document_store import DocumentStore
from ..db.models import Document, Workspace
from ..extraction import TextExtractor, generate_title
from ..search.lifecycle import IndexLifecycleTracker
from ..search.normalizer import TextNormalizer

logger = logging.getLogger("docsearch.documents")


class DocumentService:

    def __init__(
        self,
        store: DocumentStore,
        tracker: IndexLifecycleTracker,
        extractor: Optional[TextExtractor] = None,
        normalizer: Optional[TextNormalizer] = None,
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._extractor = extractor or TextExtractor()
        self._normalizer = normalizer or TextNormalizer(
            settings.normalize_preserve_line_breaks
        )

    async def get(self, workspace: Workspace, document_id: int) -> Document:
        document = await self._store.get_document(workspace.id, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    def check_upload(self, filename: str, size: int) -> str:
        """
        Reject an unsupported or oversize upload before its body is read.
        Returns the file type.
        """
        return self._extractor.validate(filename, size)

    async def store_document(
        self,
        workspace: Workspace,
        filename: str,
        data: bytes,
        title: Optional[str] = None,
        project_id: Optional[int] = None,
    ) -> Document:
        """
        Extract, normalize, persist and index an uploaded file.

        The record is kept even if indexing fails; it stays unindexed and is
        picked up by the next bulk index.

        Raises
        ------
        UnsupportedContentError
            Unsupported type, oversize file or no extractable text.
        ProjectNotFoundError
            ``project_id`` does not name a project in this workspace.
        """
        if project_id is not None:
            if await self._store.get_project(workspace.id, project_id) is None:
                raise ProjectNotFoundError(
                    f"Project {project_id} not found in this workspace"
                )

        file_type = self.check_upload(filename, len(data))
        # pypdf and python-docx parse synchronously
        raw_text = await run_in_threadpool(self._extractor.extract, data, file_type)
        content = self._normalizer.normalize(raw_text)

        document = await self._store.add_document(
            Document(
                workspace_id=workspace.id,
                project_id=project_id,
                title=(title or "").strip() or generate_title(filename),
                content=content,
                file_type=file_type,
                file_size=len(data),
                original_filename=filename,
            )
        )

        try:
            await self._tracker.index_document(workspace, document)
        except IndexWriteError as exc:
            logger.warning(
                "Document %s stored in workspace %s but left unindexed: %s",
                document.id,
                workspace.id,
                exc.message,
            )

        logger.info(
            "Stored document %s (%s, %d chars) in workspace %s",
            document.id,
            filename,
            len(content),
            workspace.id,
        )
        return document

    async def update_document(
        self,
        workspace: Workspace,
        document_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Document:
        """
        Update title and/or content.

        A change to an indexed document invalidates its entry: the entry is
        removed and the document re-indexed. If re-indexing fails the
        ``IndexWriteError`` propagates with the document unindexed; inside a
        request session the whole update is then rolled back.
        """
        document = await self.get(workspace, document_id)
        was_indexed = document.is_indexed
        changed = False

        if title is not None and title.strip() and title.strip() != document.title:
            document.title = title.strip()
            changed = True

        if content is not None:
            normalized = self._normalizer.normalize(content)
            if normalized != document.content:
                document.content = normalized
                changed = True

        await self._store.flush()

        if changed and was_indexed:
            await self._tracker.remove_document(workspace, document)
            await self._tracker.index_document(workspace, document)

        return document

    async def delete_document(self, workspace: Workspace, document_id: int) -> None:
        document = await self.get(workspace, document_id)

        if document.is_indexed:
            await self._tracker.remove_document(workspace, document)

        await self._store.delete_document(workspace.id, document.id)
        logger.info("Deleted document %s from workspace %s", document_id, workspace.id)
