"""
Search Data Models

Typed records exchanged between the search core, the index engine and the
API layer. None of these are persisted; storage models live in ``db.models``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, ConfigDict

from ..core.errors import InvalidSortModeError


class SortMode(str, Enum):
    """Orderings supported by the result sorter."""

    RELEVANCE = "relevance"
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    SIZE_DESC = "size_desc"
    SIZE_ASC = "size_asc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortMode":
        """
        Resolve a raw string to a SortMode. ``None`` or empty means relevance.
        """
        if value is None or value == "":
            return cls.RELEVANCE
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidSortModeError(f"Invalid sort option: {value!r}") from exc


HealthStatus = Literal["healthy", "warning", "error"]


class SearchFilters(BaseModel):
    """
    Optional narrowing applied by the index engine.
    """
    file_type: List[str] = Field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")


class SearchResult(BaseModel):
    """
    One matched document, annotated with a snippet and a relevance score.
    """
    id: int
    title: str
    snippet: str
    file_type: str
    file_size: int = Field(..., ge=0)
    formatted_file_size: str
    original_filename: Optional[str] = None
    created_at: datetime
    score: float = Field(..., ge=0.0, le=1.0)


class Pagination(BaseModel):
    total: int = Field(..., ge=0)
    current_page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)
    last_page: int = Field(..., ge=1)
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class IndexStatus(BaseModel):
    """
    Derived index statistics for a workspace. Recomputed on every request.
    """
    total_documents: int = Field(..., ge=0)
    indexed_documents: int = Field(..., ge=0)
    unindexed_documents: int = Field(..., ge=0)
    index_size: int = Field(..., ge=0)
    formatted_index_size: str
    last_updated: Optional[datetime] = None
    index_health: HealthStatus


class RebuildResult(BaseModel):
    total_documents: int = Field(..., ge=0)
    indexed_documents: int = Field(..., ge=0)
    processing_time: float = Field(..., ge=0.0)
    failed_document_ids: List[int] = Field(default_factory=list)


def format_bytes(num_bytes: Optional[int]) -> str:
    """
    Render a byte count for humans, e.g. ``4096 -> "4 KB"``.
    """
    if not num_bytes:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(num_bytes)
    unit_index = 0

    while value >= 1024 and unit_index < len(units) - 1:
        value /= 1024
        unit_index += 1

    rounded = round(value, 2)
    if rounded == int(rounded):
        rounded = int(rounded)

    return f"{rounded} {units[unit_index]}"


class WorkspaceSummary(BaseModel):
    id: int
    name: str
    slug: str


class SearchPage(BaseModel):
    """
    One page of search results plus the metadata returned alongside it.
    """
    results: List[SearchResult] = Field(default_factory=list)
    pagination: Pagination
    query: str
    search_time: float = Field(..., ge=0.0)
    total_indexed: int = Field(..., ge=0)
    workspace: WorkspaceSummary

    # Only populated by advanced search
    filters: Optional[SearchFilters] = None
    sort: Optional[SortMode] = None

    model_config = ConfigDict(populate_by_name=True)
