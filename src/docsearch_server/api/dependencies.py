"""
Request-scoped dependency factories.

Everything here is built per request from the request's database session;
no service instance outlives the request that created it.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core.errors import ProjectNotFoundError, WorkspaceNotFoundError
from ..db import get_async_session
from ..db.document_store import DocumentStore
from ..db.models import Project, Workspace
from ..documents.service import DocumentService
from ..search.engine import PostgresFullTextIndex, SearchIndexEngine
from ..search.lifecycle import IndexLifecycleTracker
from ..search.service import SearchService

workspace_key_header = APIKeyHeader(name="X-Workspace-Key", auto_error=False)


# ---------------------------------------------------------------------
# Persistence and Engine
# ---------------------------------------------------------------------

def get_document_store(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DocumentStore:
    return DocumentStore(session)


def get_index_engine(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> SearchIndexEngine:
    return PostgresFullTextIndex(session)


# ---------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------

def get_lifecycle_tracker(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    engine: Annotated[SearchIndexEngine, Depends(get_index_engine)],
) -> IndexLifecycleTracker:
    return IndexLifecycleTracker(store, engine)


def get_search_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    engine: Annotated[SearchIndexEngine, Depends(get_index_engine)],
) -> SearchService:
    return SearchService(store, engine)


def get_document_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    tracker: Annotated[IndexLifecycleTracker, Depends(get_lifecycle_tracker)],
) -> DocumentService:
    return DocumentService(store, tracker)


# ---------------------------------------------------------------------
# Workspace Resolution
# ---------------------------------------------------------------------

async def get_current_workspace(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    header_key: Annotated[Optional[str], Depends(workspace_key_header)],
    api_key: Annotated[Optional[str], Query()] = None,
) -> Workspace:
    """
    Resolve the active workspace named by the ``X-Workspace-Key`` header or
    the ``api_key`` query parameter. Either may hold a slug or an API key.

    Raises
    ------
    WorkspaceNotFoundError
        If no identifier is given or it does not match an active workspace.
    """
    identifier = (header_key or api_key or "").strip()
    if not identifier:
        raise WorkspaceNotFoundError("Workspace key is required")

    workspace = await store.find_workspace(identifier)
    if workspace is None:
        raise WorkspaceNotFoundError("Invalid or inactive workspace")

    return workspace


CurrentWorkspace = Annotated[Workspace, Depends(get_current_workspace)]


async def get_current_project(
    project_id: int,
    workspace: CurrentWorkspace,
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> Project:
    """
    Resolve the ``{project_id}`` path parameter inside the current workspace.
    A project owned by another workspace is reported as not found.
    """
    project = await store.get_project(workspace.id, project_id)
    if project is None:
        raise ProjectNotFoundError(f"Project {project_id} not found")
    return project


CurrentProject = Annotated[Project, Depends(get_current_project)]


# ---------------------------------------------------------------------
# Admin Guard
# ---------------------------------------------------------------------

async def verify_admin(
    x_admin_key: Optional[str] = Header(None, alias="x-admin-key"),
    key: Optional[str] = Query(None),
):
    """
    Verify the request is from an admin using the configured API key.
    Checks header first, then query param.
    """
    expected_key = settings.admin_api_key.get_secret_value() if settings.admin_api_key else None

    if not expected_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access is not configured (ADMIN_API_KEY missing)",
        )

    provided_key = x_admin_key or key

    if not provided_key or provided_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing admin API key",
        )

