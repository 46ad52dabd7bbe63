"""
Workspace Routes

Listing and creation of tenants. Creation is guarded by the admin key and
is the only response that ever returns a workspace's API key.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from .dependencies import get_document_store, verify_admin
from .models import WorkspaceCreateRequest, WorkspaceCreatedOut, WorkspaceOut, envelope
from ..db.document_store import DocumentStore
from ..db.models import Workspace
from ..tenants import generate_api_key

logger = logging.getLogger("docsearch.workspaces")

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get("", summary="List active workspaces")
async def list_workspaces(
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    workspaces = await store.list_workspaces()
    return envelope([WorkspaceOut.from_workspace(ws) for ws in workspaces])


@router.post(
    "",
    summary="Create a workspace",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_admin)],
)
async def create_workspace(
    req: WorkspaceCreateRequest,
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    slug = req.resolved_slug()

    if await store.slug_exists(slug):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Workspace slug '{slug}' is already taken",
        )

    workspace = await store.add_workspace(
        Workspace(
            name=req.name,
            slug=slug,
            description=req.description,
            settings=req.settings,
            api_key=generate_api_key(),
            is_active=True,
        )
    )

    logger.info("Created workspace %s (%s)", workspace.id, workspace.slug)

    out = WorkspaceCreatedOut(
        **WorkspaceOut.from_workspace(workspace).model_dump(),
        api_key=workspace.api_key,
    )
    return envelope(out)
