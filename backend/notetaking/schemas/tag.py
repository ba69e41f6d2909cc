from typing import List

from pydantic import BaseModel, Field


class TagItem(BaseModel):
    id: int
    name: str
    notes_count: int = Field(description="The caller's non-deleted notes carrying this tag")


class TagListResponse(BaseModel):
    tags: List[TagItem]
