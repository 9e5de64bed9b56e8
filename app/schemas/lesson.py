from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.question import LessonQuestion

class MediaAsset(BaseModel):
    public_id: Optional[str] = None
    url: str

class LinkItem(BaseModel):
    title: str
    url: str

class LessonBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    video_length: Optional[int] = Field(default=None, ge=0) # minutes
    video_player: Optional[str] = None
    suggestion: Optional[str] = None
    links: List[LinkItem] = Field(default_factory=list)
    is_free: bool = False

class LessonCreate(LessonBase):
    section_id: int
    title: str = Field(..., min_length=1)
    video: Optional[MediaAsset] = None

class LessonUpdate(BaseModel):
    lesson_id: int
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    video_length: Optional[int] = Field(default=None, ge=0)
    is_free: Optional[bool] = None
    video: Optional[MediaAsset] = None
    links: Optional[List[LinkItem]] = None
    suggestion: Optional[str] = None
    is_published: Optional[bool] = None

class LessonRef(BaseModel):
    lesson_id: int

class LessonVideoUpload(LessonRef):
    """``video`` is anything Cloudinary's uploader accepts: a remote url or a data uri."""
    video: str = Field(..., min_length=1)

class Lesson(LessonBase):
    id: int
    section_id: int
    order: int
    video: Optional[MediaAsset] = None
    is_published: bool = False
    questions: List[LessonQuestion] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
