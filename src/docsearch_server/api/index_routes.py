"""
Index Routes

Index health reporting and full rebuilds for the current workspace.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from .dependencies import CurrentWorkspace, get_lifecycle_tracker
from .models import envelope
from ..search.lifecycle import IndexLifecycleTracker

router = APIRouter(prefix="/index", tags=["index"])


@router.get("/status", summary="Index statistics and health")
async def index_status(
    workspace: CurrentWorkspace,
    tracker: Annotated[IndexLifecycleTracker, Depends(get_lifecycle_tracker)],
):
    status = await tracker.get_index_status(workspace)
    return envelope(status)


@router.post("/rebuild", summary="Rebuild the workspace index from scratch")
async def rebuild_index(
    workspace: CurrentWorkspace,
    tracker: Annotated[IndexLifecycleTracker, Depends(get_lifecycle_tracker)],
):
    result = await tracker.rebuild_index(workspace)
    return {
        "success": True,
        "message": "Search index rebuilt",
        "data": result.model_dump(mode="json"),
    }
