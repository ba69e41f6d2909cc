"""
Note Taking API — Note Request/Response Schemas
=================================================

What:  Pydantic models defining the notes API contract.
Why:   Request bodies are validated before any handler or service runs, so
       validation failures can never leave a half-written note behind.

Validation rules (422 with field-level detail on failure):
    - title:   non-blank, at most 200 characters
    - content: non-blank
    - tags:    every entry non-blank and at most 100 characters; duplicates
               are allowed here and collapsed by the tag reconciler
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

TITLE_MAX_LENGTH = 200
TAG_NAME_MAX_LENGTH = 100


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteWriteRequest(BaseModel):
    """Fields shared by create and update."""

    title: str = Field(max_length=TITLE_MAX_LENGTH, description="Note title")
    content: str = Field(description="Free-text note body")
    tags: List[str] = Field(
        default_factory=list,
        description="Tag names; matched exactly (case and whitespace significant)",
    )

    @field_validator("title", "content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tag_names(cls, v: List[str]) -> List[str]:
        for name in v:
            if not name.strip():
                raise ValueError("Tag names cannot be empty")
            if len(name) > TAG_NAME_MAX_LENGTH:
                raise ValueError(
                    f"Tag names cannot be longer than {TAG_NAME_MAX_LENGTH} characters"
                )
        return v


class NoteCreateRequest(NoteWriteRequest):
    """Body of POST /notes."""


class NoteUpdateRequest(NoteWriteRequest):
    """
    Body of PUT /notes/{id}.

    `id` may be echoed by clients; when present it must equal the path id.
    """

    id: Optional[int] = Field(default=None, description="Must match the path id when given")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    Full representation of a note with its tag names.

    For create/update, `tags` echoes the caller's deduplicated list in the
    order first given. For reads it is resolved through the join, sorted by name.
    """

    id: int = Field(description="Note identifier")
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last modification timestamp (UTC)")

    model_config = {"from_attributes": True}


class NoteListResponse(BaseModel):
    """
    One page of the caller's notes, most recently updated first.

    total_count is computed over the filtered but unpaginated set, so clients
    can render "page X of N" without another request.
    """

    notes: List[NoteResponse] = Field(description="Notes on this page")
    total_count: int = Field(description="Number of notes matching the filters")
    page: int = Field(description="1-based page number that was requested")
    page_size: int = Field(description="Requested page size")
