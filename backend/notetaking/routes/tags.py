from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.database import get_db_session
from notetaking.schemas.common import ErrorResponse
from notetaking.schemas.tag import TagListResponse
from notetaking.security import get_current_user_id
from notetaking.services.tag_service import tag_service

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get(
    "",
    response_model=TagListResponse,
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
    summary="Get tags",
    description="Lists every tag with the number of the caller's notes carrying it",
)
async def list_tags(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TagListResponse:
    return await tag_service.list_tags(db=db, user_id=user_id)
