"""
Note Taking API — Notes Route Handlers
========================================

What:  CRUD endpoints for the caller's notes.
How:   Resolve the caller via get_current_user_id, hand the request session
       to the services, shape the HTTP response (status, headers).

    POST   /notes           create            → 201 + Location
    GET    /notes           list / search     → 200 + X-Total-Count
    GET    /notes/{id}      fetch             → 200 | 404
    PUT    /notes/{id}      update            → 200 | 404
    DELETE /notes/{id}      soft delete       → 204 | 404
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.config import settings
from notetaking.database import get_db_session
from notetaking.exceptions import ValidationError
from notetaking.schemas.common import ErrorResponse
from notetaking.schemas.note import (
    NoteCreateRequest,
    NoteListResponse,
    NoteResponse,
    NoteUpdateRequest,
)
from notetaking.security import get_current_user_id
from notetaking.services.note_query_service import note_query_service
from notetaking.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["Notes"])

NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}
UNAUTHORIZED = {401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteResponse,
    responses={**UNAUTHORIZED},
    summary="Create new note",
    description="Creates a new note with title, content and tags",
)
async def create_note(
    body: NoteCreateRequest,
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    result = await note_service.create_note(
        db=db,
        user_id=user_id,
        title=body.title,
        content=body.content,
        tags=body.tags,
    )
    response.headers["Location"] = f"/notes/{result.id}"
    return result


@router.get(
    "",
    response_model=NoteListResponse,
    responses={**UNAUTHORIZED},
    summary="Get user notes",
    description=(
        "Retrieves a paginated list of the caller's notes, most recently updated "
        "first, with optional case-sensitive text search and exact tag filtering."
    ),
)
async def list_notes(
    response: Response,
    page: int = Query(default=1, ge=1, description="1-based page number"),
    page_size: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        alias="pageSize",
        description="Items per page",
    ),
    search: Optional[str] = Query(
        default=None, description="Substring matched against title or content (case-sensitive)"
    ),
    tag: Optional[str] = Query(default=None, description="Only notes carrying this exact tag"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_query_service.list_notes(
        db=db,
        user_id=user_id,
        page=page,
        page_size=page_size,
        search=search,
        tag=tag,
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND},
    summary="Get note by ID",
    description="Retrieves a specific note by its ID",
)
async def get_note(
    note_id: int,
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    result = await note_query_service.get_note(db=db, note_id=note_id, user_id=user_id)
    # Notes are mutable and per-user
    response.headers["Cache-Control"] = "private, no-cache"
    return result


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Body id does not match path id", "model": ErrorResponse},
        **UNAUTHORIZED,
        **NOT_FOUND,
    },
    summary="Update note",
    description="Updates an existing note and replaces its tags",
)
async def update_note(
    note_id: int,
    body: NoteUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    if body.id is not None and body.id != note_id:
        raise ValidationError(
            message="Note id in the body does not match the URL",
            field="id",
        )
    return await note_service.update_note(
        db=db,
        note_id=note_id,
        user_id=user_id,
        title=body.title,
        content=body.content,
        tags=body.tags,
    )


@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**UNAUTHORIZED, **NOT_FOUND},
    summary="Delete note",
    description="Soft deletes a note",
)
async def delete_note(
    note_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete_note(db=db, note_id=note_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
