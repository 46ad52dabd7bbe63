"""
Search Routes

Full-text search over one workspace. The workspace comes from the request
key; results are annotated with highlighted snippets and relevance scores
and ordered by the requested sort mode.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from fastapi.exceptions import RequestValidationError

from .dependencies import CurrentWorkspace, get_search_service
from .models import AdvancedSearchRequest, FileType, SearchFiltersRequest, envelope
from ..config import settings
from ..search.models import SortMode
from ..search.service import SearchService

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", summary="Search workspace documents")
async def search(
    workspace: CurrentWorkspace,
    service: Annotated[SearchService, Depends(get_search_service)],
    q: str = Query(..., min_length=2, max_length=500),
    file_type: Annotated[Optional[List[FileType]], Query()] = None,
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    sort: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_per_page, ge=1, le=100),
):
    """
    Query parameters mirror ``POST /search/advanced``. An unknown ``sort``
    value is rejected with 422 ``invalid_sort_mode``.
    """
    sort_mode = SortMode.parse(sort)

    try:
        filters = SearchFiltersRequest(
            file_type=file_type or [],
            date_from=date_from,
            date_to=date_to,
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_context=False)) from exc

    result = await service.search(
        workspace,
        q,
        filters=filters.to_filters(),
        sort=sort_mode,
        page=page,
        per_page=per_page,
    )
    return envelope(result)


@router.post("/advanced", summary="Search with explicit filters and sort")
async def advanced_search(
    req: AdvancedSearchRequest,
    workspace: CurrentWorkspace,
    service: Annotated[SearchService, Depends(get_search_service)],
):
    result = await service.advanced_search(
        workspace,
        req.query,
        filters=req.filters.to_filters(),
        sort=req.sort,
        page=req.page,
        per_page=req.per_page,
    )
    return envelope(result)


@router.get("/suggestions", summary="Title suggestions for a partial query")
async def suggestions(
    workspace: CurrentWorkspace,
    service: Annotated[SearchService, Depends(get_search_service)],
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(5, ge=1, le=20),
):
    titles = await service.suggestions(workspace, q, limit=limit)
    return envelope(titles)
