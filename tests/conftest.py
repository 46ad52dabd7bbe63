from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from docsearch_server.db.models import Document, Project, Workspace
from docsearch_server.search.engine import IndexEngineError
from docsearch_server.search.models import SearchFilters
from docsearch_server.search.terms import extract_terms

BASE_TIME = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------

class FakeDocumentStore:
    """Dict-backed stand-in for DocumentStore with the same async surface."""

    def __init__(self):
        self.workspaces: Dict[int, Workspace] = {}
        self.projects: Dict[int, Project] = {}
        self.documents: Dict[int, Document] = {}
        self.flushes = 0
        self._next_doc_id = 1
        self._next_ws_id = 1
        self._next_project_id = 1

    async def commit(self):
        pass

    async def flush(self):
        self.flushes += 1

    # Workspaces

    async def find_workspace(self, identifier):
        for ws in self.workspaces.values():
            if ws.is_active and identifier in (ws.slug, ws.api_key):
                return ws
        return None

    async def list_workspaces(self):
        return [ws for ws in self.workspaces.values() if ws.is_active]

    async def add_workspace(self, workspace):
        if workspace.id is None:
            workspace.id = self._next_ws_id
        self._next_ws_id = max(self._next_ws_id, workspace.id) + 1
        if workspace.created_at is None:
            workspace.created_at = BASE_TIME
        self.workspaces[workspace.id] = workspace
        return workspace

    async def slug_exists(self, slug):
        return any(ws.slug == slug for ws in self.workspaces.values())

    # Projects

    async def get_project(self, workspace_id, project_id):
        project = self.projects.get(project_id)
        if project is None or project.workspace_id != workspace_id or not project.is_active:
            return None
        return project

    async def list_projects(self, workspace_id, limit=None, offset=0):
        projects = [
            p for p in self.projects.values()
            if p.workspace_id == workspace_id and p.is_active
        ]
        projects.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        projects = projects[offset:]
        return projects[:limit] if limit is not None else projects

    async def count_projects(self, workspace_id):
        return len(await self.list_projects(workspace_id))

    async def add_project(self, project):
        if project.id is None:
            project.id = self._next_project_id
        self._next_project_id = max(self._next_project_id, project.id) + 1
        if project.created_at is None:
            project.created_at = BASE_TIME
        self.projects[project.id] = project
        return project

    async def project_slug_exists(self, workspace_id, slug):
        return any(
            p.workspace_id == workspace_id and p.slug == slug
            for p in self.projects.values()
        )

    async def delete_project(self, workspace_id, project_id):
        if await self.get_project(workspace_id, project_id) is None:
            return 0
        for doc in self._in_workspace(workspace_id):
            if doc.project_id == project_id:
                doc.project_id = None
        del self.projects[project_id]
        return 1

    # Documents

    async def add_document(self, document):
        if document.id is None:
            document.id = self._next_doc_id
        self._next_doc_id = max(self._next_doc_id, document.id) + 1
        if document.created_at is None:
            document.created_at = BASE_TIME
        self.documents[document.id] = document
        return document

    def _in_workspace(self, workspace_id):
        return [d for d in self.documents.values() if d.workspace_id == workspace_id]

    async def get_document(self, workspace_id, document_id):
        doc = self.documents.get(document_id)
        if doc is None or doc.workspace_id != workspace_id:
            return None
        return doc

    async def get_documents(self, workspace_id, document_ids):
        return [
            self.documents[i]
            for i in document_ids
            if i in self.documents and self.documents[i].workspace_id == workspace_id
        ]

    async def list_documents(self, workspace_id, project_id=None, limit=None, offset=0):
        docs = self._in_workspace(workspace_id)
        if project_id is not None:
            docs = [d for d in docs if d.project_id == project_id]
        docs.sort(key=lambda d: (d.created_at, d.id), reverse=True)
        docs = docs[offset:]
        return docs[:limit] if limit is not None else docs

    async def list_all_documents(self, workspace_id):
        return sorted(self._in_workspace(workspace_id), key=lambda d: d.id)

    async def list_unindexed_documents(self, workspace_id):
        return [d for d in await self.list_all_documents(workspace_id) if d.indexed_at is None]

    async def delete_document(self, workspace_id, document_id):
        doc = await self.get_document(workspace_id, document_id)
        if doc is None:
            return 0
        del self.documents[document_id]
        return 1

    # Aggregates

    async def count_documents(self, workspace_id, project_id=None):
        docs = self._in_workspace(workspace_id)
        if project_id is not None:
            docs = [d for d in docs if d.project_id == project_id]
        return len(docs)

    async def count_indexed(self, workspace_id):
        return sum(1 for d in self._in_workspace(workspace_id) if d.indexed_at is not None)

    async def last_indexed_at(self, workspace_id):
        stamps = [d.indexed_at for d in self._in_workspace(workspace_id) if d.indexed_at]
        return max(stamps) if stamps else None

    async def get_statistics(self, workspace, project=None):
        docs = self._in_workspace(workspace.id)
        if project is not None:
            docs = [d for d in docs if d.project_id == project.id]
        indexed = sum(1 for d in docs if d.indexed_at is not None)
        file_types: Dict[str, int] = {}
        for d in docs:
            file_types[d.file_type] = file_types.get(d.file_type, 0) + 1
        return {
            "total_documents": len(docs),
            "indexed_documents": indexed,
            "unindexed_documents": len(docs) - indexed,
            "total_size": sum(d.file_size or 0 for d in docs),
            "recent_uploads": len(docs),
            "file_types": file_types,
            "last_indexed_at": (
                workspace.last_indexed_at if project is None
                else max((d.indexed_at for d in docs if d.indexed_at), default=None)
            ),
        }

    async def suggest_titles(self, workspace_id, partial, limit=5):
        needle = partial.lower()
        titles: List[str] = []
        matches = [
            d for d in sorted(self._in_workspace(workspace_id), key=lambda d: d.id)
            if needle in d.title.lower() or needle in (d.content or "").lower()
        ][:limit]
        for d in matches:
            if d.title not in titles:
                titles.append(d.title)
        return titles


class FakeIndexEngine:
    """
    Substring-matching engine. Documents whose id is in ``failing_ids``
    are rejected on write.
    """

    def __init__(self, failing_ids: Optional[Set[int]] = None):
        self.entries: Dict[Tuple[int, int], dict] = {}
        self.failing_ids = set(failing_ids or ())
        self.index_calls: List[int] = []
        self.removed: List[int] = []

    async def index_document(self, workspace_id, document_id, title, content, file_type, created_at=None):
        self.index_calls.append(document_id)
        if document_id in self.failing_ids:
            raise IndexEngineError(f"engine rejected {document_id}")
        self.entries[(workspace_id, document_id)] = {
            "title": title,
            "content": content,
            "file_type": file_type,
            "created_at": created_at,
        }

    async def remove_from_index(self, workspace_id, document_id):
        self.removed.append(document_id)
        return 1 if self.entries.pop((workspace_id, document_id), None) else 0

    async def remove_many(self, workspace_id, document_ids: Sequence[int]):
        return sum([await self.remove_from_index(workspace_id, i) for i in document_ids])

    async def query_index(self, workspace_id, query, filters: Optional[SearchFilters] = None, limit=10, offset=0):
        terms = [t.lower() for t in extract_terms(query)] or [query.lower()]
        hits = []
        for (ws_id, doc_id), entry in sorted(self.entries.items()):
            if ws_id != workspace_id:
                continue
            text = f"{entry['title']} {entry['content']}".lower()
            if not any(t in text for t in terms):
                continue
            if filters is not None:
                if filters.file_type and entry["file_type"] not in filters.file_type:
                    continue
                if filters.date_from and entry["created_at"] < filters.date_from:
                    continue
                if filters.date_to and entry["created_at"] > filters.date_to:
                    continue
            hits.append(doc_id)
        return hits[offset:offset + limit], len(hits)

    async def index_size(self, workspace_id):
        return sum(
            len(e["title"]) + len(e["content"])
            for (ws_id, _), e in self.entries.items()
            if ws_id == workspace_id
        )


# ---------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------

def make_workspace(id=1, slug="acme", api_key="ws_" + "a" * 32, is_active=True):
    return Workspace(
        id=id,
        name=slug.title(),
        slug=slug,
        api_key=api_key,
        is_active=is_active,
        created_at=BASE_TIME,
    )


def make_project(id, workspace_id=1, name="Marketing", slug="marketing"):
    return Project(
        id=id,
        workspace_id=workspace_id,
        name=name,
        slug=slug,
        color="#3B82F6",
        is_active=True,
        created_at=BASE_TIME,
    )


def make_document(
    id,
    workspace_id=1,
    title="Document",
    content="",
    file_type="txt",
    file_size=100,
    indexed=False,
    created_at=None,
    project_id=None,
):
    return Document(
        id=id,
        workspace_id=workspace_id,
        project_id=project_id,
        title=title,
        content=content,
        file_type=file_type,
        file_size=file_size,
        original_filename=f"doc-{id}.{file_type}",
        indexed_at=BASE_TIME if indexed else None,
        created_at=created_at or BASE_TIME + timedelta(days=id),
    )


@pytest.fixture
def store():
    return FakeDocumentStore()


@pytest.fixture
def engine():
    return FakeIndexEngine()


@pytest.fixture
async def workspace(store):
    return await store.add_workspace(make_workspace())
