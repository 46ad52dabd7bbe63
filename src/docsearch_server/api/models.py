"""
API Models for the Document Search Server

Pydantic models used for request/response validation across workspace,
project, document, search and index endpoints.

Conventions
-----------
- Request bodies forbid unknown fields
- Successful responses are wrapped as ``{"success": true, "data": ...}``
- Sort modes are validated at the boundary; an unknown mode is a 422
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

from ..db.models import Document, Project, Workspace
from ..search.models import SearchFilters, SortMode, format_bytes
from ..tenants import WorkspaceIdentity, slugify

FileType = Literal["pdf", "doc", "docx", "txt"]


def envelope(data: Any) -> Dict[str, Any]:
    """Wrap a payload in the standard success envelope."""
    return {"success": True, "data": jsonable_encoder(data, by_alias=True)}


# ---------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------

class WorkspaceCreateRequest(WorkspaceIdentity):
    description: Optional[str] = Field(default=None, max_length=2000)
    settings: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class WorkspaceOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool
    last_indexed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_workspace(cls, workspace: Workspace) -> "WorkspaceOut":
        return cls.model_validate(workspace)


class WorkspaceCreatedOut(WorkspaceOut):
    """Returned once on creation; the only response that carries the key."""
    api_key: str


# ---------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------

DEFAULT_PROJECT_COLOR = "#3B82F6"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    color: str = Field(default=DEFAULT_PROJECT_COLOR, pattern=HEX_COLOR_PATTERN)

    _slug: str = PrivateAttr(default="")

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def derive_slug(self) -> "ProjectCreateRequest":
        self._slug = slugify(self.name)
        return self

    @property
    def slug(self) -> str:
        return self._slug


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_not_empty(self) -> "ProjectUpdateRequest":
        if self.model_fields_set.isdisjoint({"name", "description", "color"}):
            raise ValueError("At least one of 'name', 'description' or 'color' is required")
        return self


class ProjectOut(BaseModel):
    id: int
    workspace_id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_project(cls, project: Project) -> "ProjectOut":
        return cls.model_validate(project)


# ---------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------

class DocumentOut(BaseModel):
    id: int
    title: str
    file_type: str
    file_size: int
    formatted_file_size: str
    original_filename: Optional[str] = None
    project_id: Optional[int] = None
    is_indexed: bool
    indexed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Document) -> "DocumentOut":
        return cls(
            id=document.id,
            title=document.title,
            file_type=document.file_type,
            file_size=document.file_size or 0,
            formatted_file_size=format_bytes(document.file_size),
            original_filename=document.original_filename,
            project_id=document.project_id,
            is_indexed=document.is_indexed,
            indexed_at=document.indexed_at,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class DocumentDetailOut(DocumentOut):
    content: str

    @classmethod
    def from_document(cls, document: Document) -> "DocumentDetailOut":
        base = DocumentOut.from_document(document)
        return cls(**base.model_dump(), content=document.content or "")


class DocumentUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_not_empty(self) -> "DocumentUpdateRequest":
        if self.title is None and self.content is None:
            raise ValueError("At least one of 'title' or 'content' is required")
        return self


class DocumentStatisticsOut(BaseModel):
    total_documents: int
    indexed_documents: int
    unindexed_documents: int
    total_size: int
    formatted_total_size: str
    recent_uploads: int
    file_types: Dict[str, int]
    last_indexed_at: Optional[datetime] = None


class BulkIndexOut(BaseModel):
    indexed_count: int = Field(..., ge=0)


# ---------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------

class SearchFiltersRequest(BaseModel):
    file_type: List[FileType] = Field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_date_range(self) -> "SearchFiltersRequest":
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("date_to must be on or after date_from")
        return self

    def to_filters(self) -> SearchFilters:
        return SearchFilters(
            file_type=list(self.file_type),
            date_from=self.date_from,
            date_to=self.date_to,
        )


class AdvancedSearchRequest(BaseModel):
    """
    Body of ``POST /search/advanced``.
    """
    query: str = Field(..., min_length=2, max_length=500)
    filters: SearchFiltersRequest = Field(default_factory=SearchFiltersRequest)
    sort: SortMode = SortMode.RELEVANCE
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=10, ge=1, le=100)

    model_config = ConfigDict(extra="forbid")

    @field_validator("sort", mode="before")
    @classmethod
    def parse_sort(cls, v: Any) -> SortMode:
        return SortMode.parse(v)
