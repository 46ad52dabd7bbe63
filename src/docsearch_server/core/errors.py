"""
Global Error Handling

This module defines the error kinds raised by the search core and the
application-wide exception handlers that turn them into structured JSON
responses.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Carry enough context (error kind + document id) for callers to report
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("docsearch.errors")


# ---------------------------------------------------------------------
# Error Kinds
# ---------------------------------------------------------------------

class DocSearchError(Exception):
    """Base error for all search-core failures."""

    code = "docsearch_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class UnsupportedContentError(DocSearchError):
    """Raised when input cannot be turned into searchable text."""

    code = "unsupported_content"
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE


class IndexWriteError(DocSearchError):
    """Raised when the index engine rejects a write for a document."""

    code = "index_write_failure"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, document_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.document_id = document_id

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["document_id"] = self.document_id
        return payload


class InvalidSortModeError(DocSearchError, ValueError):
    """Raised when a sort mode string is not one of the known modes."""

    code = "invalid_sort_mode"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class WorkspaceNotFoundError(DocSearchError):
    """Raised when a workspace identifier does not resolve to an active workspace."""

    code = "invalid_workspace"
    status_code = status.HTTP_401_UNAUTHORIZED


class DocumentNotFoundError(DocSearchError):
    """Raised when a document does not exist inside the current workspace."""

    code = "document_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ProjectNotFoundError(DocSearchError):
    """Raised when a project does not exist inside the current workspace."""

    code = "project_not_found"
    status_code = status.HTTP_404_NOT_FOUND


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def docsearch_exception_handler(
    request: Request,
    exc: DocSearchError,
) -> JSONResponse:
    """
    Translate a known search-core error into its structured response.

    These are expected failures, so they are logged without a traceback.
    """
    logger.warning(
        "%s during request %s %s: %s",
        exc.code,
        request.method,
        request.url.path,
        exc.message,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, **exc.to_payload()},
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Last-resort handler for anything that is not a ``DocSearchError``.

    The traceback is logged; the client only sees the same envelope as
    every other error, with a generic ``internal_server_error`` code.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "success": False,
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
