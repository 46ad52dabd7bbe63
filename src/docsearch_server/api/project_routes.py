"""
Project Routes

Workspace-scoped grouping of documents. A project's slug is derived from
its name on creation and is unique inside its workspace; renaming keeps
the slug. Deleting a project leaves its documents in the workspace.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from .dependencies import CurrentProject, CurrentWorkspace, get_document_store
from .models import (
    DocumentStatisticsOut,
    ProjectCreateRequest,
    ProjectOut,
    ProjectUpdateRequest,
    envelope,
)
from ..config import settings
from ..db.document_store import DocumentStore
from ..db.models import Project
from ..search.models import format_bytes
from ..search.service import build_pagination

logger = logging.getLogger("docsearch.projects")

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", summary="List workspace projects")
async def list_projects(
    workspace: CurrentWorkspace,
    store: Annotated[DocumentStore, Depends(get_document_store)],
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_per_page, ge=1, le=100),
):
    total = await store.count_projects(workspace.id)
    projects = await store.list_projects(
        workspace.id,
        limit=per_page,
        offset=(page - 1) * per_page,
    )

    return envelope({
        "projects": [ProjectOut.from_project(p) for p in projects],
        "pagination": build_pagination(total, page, per_page, len(projects)),
    })


@router.post("", summary="Create a project", status_code=status.HTTP_201_CREATED)
async def create_project(
    req: ProjectCreateRequest,
    workspace: CurrentWorkspace,
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    if await store.project_slug_exists(workspace.id, req.slug):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Project slug '{req.slug}' is already taken in this workspace",
        )

    project = await store.add_project(
        Project(
            workspace_id=workspace.id,
            name=req.name,
            slug=req.slug,
            description=req.description,
            color=req.color,
            is_active=True,
        )
    )

    logger.info("Created project %s (%s) in workspace %s", project.id, project.slug, workspace.id)
    return envelope(ProjectOut.from_project(project))


@router.get("/{project_id}", summary="Show one project")
async def get_project(project: CurrentProject):
    return envelope(ProjectOut.from_project(project))


@router.patch("/{project_id}", summary="Update a project")
async def update_project(
    req: ProjectUpdateRequest,
    project: CurrentProject,
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    if req.name is not None:
        project.name = req.name
    if "description" in req.model_fields_set:
        project.description = req.description
    if req.color is not None:
        project.color = req.color

    await store.flush()
    return envelope(ProjectOut.from_project(project))


@router.delete("/{project_id}", summary="Delete a project")
async def delete_project(
    project: CurrentProject,
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    await store.delete_project(project.workspace_id, project.id)
    logger.info("Deleted project %s from workspace %s", project.id, project.workspace_id)
    return {"success": True, "message": "Project deleted"}


@router.get("/{project_id}/statistics", summary="Project document statistics")
async def project_statistics(
    workspace: CurrentWorkspace,
    project: CurrentProject,
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    stats = await store.get_statistics(workspace, project=project)
    out = DocumentStatisticsOut(
        **stats,
        formatted_total_size=format_bytes(stats["total_size"]),
    )
    return envelope(out)
