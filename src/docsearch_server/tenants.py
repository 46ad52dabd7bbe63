"""
Multi-Tenant Support

Workspace identity helpers: slug validation, slug generation and API key
issuance.

Architecture
------------
- Each workspace is identified by a unique, URL-safe ``slug``
- Each workspace holds one ``api_key`` of the form ``ws_`` + 32 random chars
- Requests name their workspace with either value (see ``api.dependencies``)

Security
--------
- Slugs are restricted to lowercase alphanumerics and single hyphens
- Maximum 64 characters
- API keys come from ``secrets`` and are never derived from the slug
"""

from __future__ import annotations

import re
import secrets
import string
import unicodedata
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MAX_LENGTH = 64

API_KEY_PREFIX = "ws_"
API_KEY_RANDOM_LENGTH = 32

_KEY_ALPHABET = string.ascii_letters + string.digits
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class InvalidWorkspaceSlugError(ValueError):
    """Raised when a workspace slug is missing or malformed."""


# ---------------------------------------------------------------------
# Workspace Identity Model
# ---------------------------------------------------------------------

class WorkspaceIdentity(BaseModel):
    """
    Validated name/slug pair for a new workspace.

    If no slug is given, one is derived from the name.
    """

    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=SLUG_MAX_LENGTH)

    @field_validator("slug", mode="before")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None

        if not isinstance(v, str):
            raise InvalidWorkspaceSlugError("slug must be a string")

        v = v.strip()

        if len(v) > SLUG_MAX_LENGTH or not SLUG_PATTERN.match(v):
            raise InvalidWorkspaceSlugError(
                f"Invalid slug '{v}': must be 1-64 lowercase alphanumeric chars separated by hyphens"
            )

        return v

    @model_validator(mode="after")
    def derive_slug(self) -> "WorkspaceIdentity":
        if self.slug is None:
            self.slug = slugify(self.name)
        return self

    def resolved_slug(self) -> str:
        return self.slug or slugify(self.name)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def slugify(value: str) -> str:
    """
    Turn a display name into a slug, e.g. ``"Acme Docs!" -> "acme-docs"``.

    Raises
    ------
    InvalidWorkspaceSlugError
        If nothing slug-safe is left of the input.
    """
    ascii_value = (
        unicodedata.normalize("NFKD", value)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = _NON_SLUG_CHARS.sub("-", ascii_value.lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")

    if not slug:
        raise InvalidWorkspaceSlugError(f"Cannot derive a slug from '{value}'")

    return slug


def generate_api_key() -> str:
    """
    Issue a new workspace API key: ``ws_`` followed by 32 random alphanumerics.
    """
    random_part = "".join(
        secrets.choice(_KEY_ALPHABET) for _ in range(API_KEY_RANDOM_LENGTH)
    )
    return f"{API_KEY_PREFIX}{random_part}"
