import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class VideoOut(BaseModel):
    """A videos row as returned to clients (camelCase keys, `_id`)."""

    id: uuid.UUID = Field(serialization_alias="_id")
    title: str | None = None
    description: str | None = None
    video_file: str = Field(serialization_alias="videoFile")
    thumbnail: str
    duration: float | None = None
    views: int = 0
    is_published: bool = Field(True, serialization_alias="isPublished")
    user_id: str | None = Field(None, serialization_alias="userId")
    created_at: datetime | None = Field(None, serialization_alias="createdAt")
    updated_at: datetime | None = Field(None, serialization_alias="updatedAt")

    @classmethod
    def from_row(cls, row: dict) -> "VideoOut":
        return cls.model_validate(row)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PageInfo(BaseModel):
    total_videos: int = Field(serialization_alias="totalVideos")
    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")


class VideoListResponse(BaseModel):
    videos: list[VideoOut]
    page_info: PageInfo = Field(serialization_alias="pageInfo")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
