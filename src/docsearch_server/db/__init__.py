"""
Database Package

Provides SQLAlchemy async session management, model definitions and the
tenant-scoped document store for PostgreSQL.
"""

from .session import get_async_session, session_scope, async_engine, AsyncSessionLocal, create_schema
from .models import Base, Workspace, Project, Document, SearchIndexEntry
from .document_store import DocumentStore

__all__ = [
    "get_async_session",
    "session_scope",
    "async_engine",
    "AsyncSessionLocal",
    "create_schema",
    "Base",
    "Workspace",
    "Project",
    "Document",
    "SearchIndexEntry",
    "DocumentStore",
]
