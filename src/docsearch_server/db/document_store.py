"""
Document Store

Tenant-scoped persistence for workspaces, projects and documents. Every
query issued here carries a ``workspace_id`` predicate; there is no method that reads or
writes a document without naming its workspace.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, delete, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, Project, Workspace

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class DocumentStore:
    """
    PostgreSQL-backed document repository.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        """
        self._session = session

    async def _scalar(self, stmt) -> Any:
        return (await self._session.execute(stmt)).scalar()

    async def commit(self) -> None:
        await self._session.commit()

    async def flush(self) -> None:
        await self._session.flush()

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    async def find_workspace(self, identifier: str) -> Optional[Workspace]:
        """
        Resolve an active workspace by slug or API key.
        """
        stmt = select(Workspace).where(
            or_(Workspace.slug == identifier, Workspace.api_key == identifier),
            Workspace.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_workspaces(self) -> List[Workspace]:
        stmt = select(Workspace).where(Workspace.is_active.is_(True)).order_by(Workspace.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def add_workspace(self, workspace: Workspace) -> Workspace:
        self._session.add(workspace)
        await self._session.flush()
        return workspace

    async def slug_exists(self, slug: str) -> bool:
        stmt = select(func.count()).select_from(Workspace).where(Workspace.slug == slug)
        result = await self._session.execute(stmt)
        return (result.scalar() or 0) > 0

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_project(self, workspace_id: int, project_id: int) -> Optional[Project]:
        stmt = select(Project).where(
            Project.workspace_id == workspace_id,
            Project.id == project_id,
            Project.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_projects(
        self,
        workspace_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Project]:
        stmt = (
            select(Project)
            .where(Project.workspace_id == workspace_id, Project.is_active.is_(True))
            .order_by(Project.created_at.desc(), Project.id.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_projects(self, workspace_id: int) -> int:
        stmt = select(func.count()).select_from(Project).where(
            Project.workspace_id == workspace_id,
            Project.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def add_project(self, project: Project) -> Project:
        self._session.add(project)
        await self._session.flush()
        return project

    async def project_slug_exists(self, workspace_id: int, slug: str) -> bool:
        stmt = select(func.count()).select_from(Project).where(
            Project.workspace_id == workspace_id,
            Project.slug == slug,
        )
        result = await self._session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def delete_project(self, workspace_id: int, project_id: int) -> int:
        """
        Delete a project. Its documents stay in the workspace, ungrouped.
        """
        await self._session.execute(
            update(Document)
            .where(
                Document.workspace_id == workspace_id,
                Document.project_id == project_id,
            )
            .values(project_id=None)
        )
        stmt = delete(Project).where(
            Project.workspace_id == workspace_id,
            Project.id == project_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def add_document(self, document: Document) -> Document:
        self._session.add(document)
        await self._session.flush()
        return document

    async def get_document(self, workspace_id: int, document_id: int) -> Optional[Document]:
        stmt = select(Document).where(
            Document.workspace_id == workspace_id,
            Document.id == document_id,
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_documents(
        self,
        workspace_id: int,
        document_ids: Sequence[int],
    ) -> List[Document]:
        """
        Load documents by id, returned in the order of ``document_ids``.
        Ids belonging to other workspaces are silently dropped.
        """
        if not document_ids:
            return []

        stmt = select(Document).where(
            Document.workspace_id == workspace_id,
            Document.id.in_(list(document_ids)),
        )
        result = await self._session.execute(stmt)
        by_id = {doc.id: doc for doc in result.scalars().all()}
        return [by_id[i] for i in document_ids if i in by_id]

    async def list_documents(
        self,
        workspace_id: int,
        project_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Document]:
        stmt = (
            select(Document)
            .where(Document.workspace_id == workspace_id)
            .order_by(Document.created_at.desc(), Document.id.desc())
            .offset(offset)
        )
        if project_id is not None:
            stmt = stmt.where(Document.project_id == project_id)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_all_documents(self, workspace_id: int) -> List[Document]:
        stmt = (
            select(Document)
            .where(Document.workspace_id == workspace_id)
            .order_by(Document.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_unindexed_documents(self, workspace_id: int) -> List[Document]:
        stmt = (
            select(Document)
            .where(
                Document.workspace_id == workspace_id,
                Document.indexed_at.is_(None),
            )
            .order_by(Document.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete_document(self, workspace_id: int, document_id: int) -> int:
        stmt = delete(Document).where(
            Document.workspace_id == workspace_id,
            Document.id == document_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def count_documents(
        self,
        workspace_id: int,
        project_id: Optional[int] = None,
    ) -> int:
        stmt = select(func.count()).select_from(Document).where(
            Document.workspace_id == workspace_id
        )
        if project_id is not None:
            stmt = stmt.where(Document.project_id == project_id)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def count_indexed(self, workspace_id: int) -> int:
        stmt = select(func.count()).select_from(Document).where(
            Document.workspace_id == workspace_id,
            Document.indexed_at.is_not(None),
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def last_indexed_at(self, workspace_id: int) -> Optional[datetime]:
        stmt = select(func.max(Document.indexed_at)).where(
            Document.workspace_id == workspace_id
        )
        result = await self._session.execute(stmt)
        return result.scalar()

    async def get_statistics(
        self,
        workspace: Workspace,
        project: Optional[Project] = None,
    ) -> Dict[str, Any]:
        """
        Aggregate document statistics for a workspace, or for one of its
        projects when ``project`` is given.
        """
        scope = [Document.workspace_id == workspace.id]
        if project is not None:
            scope.append(Document.project_id == project.id)

        total = await self._scalar(select(func.count()).select_from(Document).where(*scope)) or 0
        indexed = await self._scalar(
            select(func.count()).select_from(Document).where(
                *scope, Document.indexed_at.is_not(None)
            )
        ) or 0
        total_size = await self._scalar(
            select(func.coalesce(func.sum(Document.file_size), 0)).where(*scope)
        ) or 0

        week_ago = datetime.now(timezone.utc) - timedelta(days=7)
        recent = await self._scalar(
            select(func.count()).select_from(Document).where(
                *scope, Document.created_at >= week_ago
            )
        ) or 0

        types_stmt = (
            select(Document.file_type, func.count().label("count"))
            .where(*scope)
            .group_by(Document.file_type)
        )
        types_result = await self._session.execute(types_stmt)
        file_types = {row.file_type: row.count for row in types_result}

        if project is None:
            last_indexed = workspace.last_indexed_at
        else:
            last_indexed = await self._scalar(select(func.max(Document.indexed_at)).where(*scope))

        return {
            "total_documents": total,
            "indexed_documents": indexed,
            "unindexed_documents": total - indexed,
            "total_size": int(total_size),
            "recent_uploads": recent,
            "file_types": file_types,
            "last_indexed_at": last_indexed,
        }

    async def suggest_titles(
        self,
        workspace_id: int,
        partial: str,
        limit: int = 5,
    ) -> List[str]:
        """
        Distinct titles of documents whose title or content contains ``partial``.
        ``%`` and ``_`` in ``partial`` match literally.
        """
        pattern = f"%{escape_like(partial)}%"
        stmt = (
            select(Document.title)
            .where(
                Document.workspace_id == workspace_id,
                or_(
                    Document.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Document.content.ilike(pattern, escape=LIKE_ESCAPE),
                ),
            )
            .order_by(Document.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)

        titles: List[str] = []
        for (title,) in result.all():
            if title not in titles:
                titles.append(title)
        return titles
