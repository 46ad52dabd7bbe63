"""
Document Routes

Workspace-scoped document management:

- upload (extract, normalize, store, index)
- list / show / update / delete
- aggregate statistics
- bulk indexing of documents not yet in the index
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from .dependencies import (
    CurrentWorkspace,
    get_document_service,
    get_document_store,
    get_lifecycle_tracker,
)
from .models import (
    BulkIndexOut,
    DocumentDetailOut,
    DocumentOut,
    DocumentStatisticsOut,
    DocumentUpdateRequest,
    envelope,
)
from ..config import settings
from ..db.document_store import DocumentStore
from ..documents.service import DocumentService
from ..search.lifecycle import IndexLifecycleTracker
from ..search.models import Pagination, format_bytes
from ..search.service import build_pagination

router = APIRouter(tags=["documents"])


@router.get("/documents", summary="List workspace documents")
async def list_documents(
    workspace: CurrentWorkspace,
    store: Annotated[DocumentStore, Depends(get_document_store)],
    project_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_per_page, ge=1, le=100),
):
    total = await store.count_documents(workspace.id, project_id=project_id)
    documents = await store.list_documents(
        workspace.id,
        project_id=project_id,
        limit=per_page,
        offset=(page - 1) * per_page,
    )
    pagination: Pagination = build_pagination(total, page, per_page, len(documents))

    return envelope({
        "documents": [DocumentOut.from_document(d) for d in documents],
        "pagination": pagination,
    })


@router.post(
    "/documents",
    summary="Upload a document",
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    workspace: CurrentWorkspace,
    service: Annotated[DocumentService, Depends(get_document_service)],
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    project_id: Optional[int] = Form(None),
):
    filename = file.filename or ""
    if file.size is not None:
        service.check_upload(filename, file.size)

    data = await file.read()
    document = await service.store_document(
        workspace,
        filename=filename,
        data=data,
        title=title,
        project_id=project_id,
    )
    return envelope(DocumentOut.from_document(document))


@router.get("/documents/{document_id}", summary="Show one document")
async def get_document(
    document_id: int,
    workspace: CurrentWorkspace,
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    document = await service.get(workspace, document_id)
    return envelope(DocumentDetailOut.from_document(document))


@router.patch("/documents/{document_id}", summary="Update title or content")
async def update_document(
    document_id: int,
    req: DocumentUpdateRequest,
    workspace: CurrentWorkspace,
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    document = await service.update_document(
        workspace,
        document_id,
        title=req.title,
        content=req.content,
    )
    return envelope(DocumentOut.from_document(document))


@router.delete("/documents/{document_id}", summary="Delete a document")
async def delete_document(
    document_id: int,
    workspace: CurrentWorkspace,
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    await service.delete_document(workspace, document_id)
    return {"success": True, "message": "Document deleted"}


@router.get("/documents-statistics", summary="Document statistics")
async def document_statistics(
    workspace: CurrentWorkspace,
    store: Annotated[DocumentStore, Depends(get_document_store)],
):
    stats = await store.get_statistics(workspace)
    out = DocumentStatisticsOut(
        **stats,
        formatted_total_size=format_bytes(stats["total_size"]),
    )
    return envelope(out)


@router.post("/documents-bulk-index", summary="Index all unindexed documents")
async def bulk_index(
    workspace: CurrentWorkspace,
    tracker: Annotated[IndexLifecycleTracker, Depends(get_lifecycle_tracker)],
):
    count = await tracker.bulk_index(workspace)
    return envelope(BulkIndexOut(indexed_count=count))
