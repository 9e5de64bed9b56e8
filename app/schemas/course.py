from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Union
from datetime import datetime

from app.core.constants import CourseLevelEnum
from app.schemas.lesson import MediaAsset, LinkItem
from app.schemas.question import LessonQuestion
from app.schemas.quiz import QuizPublic
from app.schemas.review import Review
from app.schemas.section import Section
from app.schemas.user import UserSummary

class CourseBase(BaseModel):
    name: str
    description: Optional[str] = None
    price: float = Field(default=0, ge=0)
    estimated_price: Optional[float] = Field(default=None, ge=0)
    tags: Optional[str] = None
    level: str = Field(default=CourseLevelEnum.BEGINNER.value, min_length=1, max_length=100)
    category_id: Optional[int] = None
    sub_category_id: Optional[int] = None
    demo_url: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

class CourseCreate(CourseBase):
    # remote url or data uri, handed to Cloudinary
    thumbnail: Optional[str] = None

class CourseUpdate(CourseBase):
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    level: Optional[str] = Field(default=None, min_length=1, max_length=100)
    thumbnail: Optional[str] = None

class CourseSummary(CourseBase):
    id: int
    author_id: int
    author: Optional[UserSummary] = None
    thumbnail: Optional[MediaAsset] = None
    is_published: bool = False
    purchased: int = 0
    rating: float = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

class CourseSnapshot(CourseSummary):
    """The whole course aggregate as stored in the cache."""
    version: int
    purchaser_ids: List[int] = Field(default_factory=list)
    sections: List[Section] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)

class CourseContentItem(BaseModel):
    """One row of a viewer-scoped course outline: a lesson, or a section's quiz block."""
    id: Union[int, str]
    section_id: int
    section_title: str
    section_description: Optional[str] = None
    section_order: int
    is_section_published: bool = False
    lesson_order: int
    title: Optional[str] = None
    description: Optional[str] = None
    video: Optional[MediaAsset] = None
    video_length: Optional[int] = None
    video_player: Optional[str] = None
    suggestion: Optional[str] = None
    links: List[LinkItem] = Field(default_factory=list)
    is_free: bool = False
    is_published: bool = False
    questions: List[LessonQuestion] = Field(default_factory=list)
    is_quiz: bool = False
    quizzes: List[QuizPublic] = Field(default_factory=list)
    section_duration: Optional[int] = None

class CourseOutlineItem(BaseModel):
    id: int
    section_id: int
    section_title: str
    section_order: int
    lesson_order: int
    title: Optional[str] = None
    video_length: Optional[int] = None
    is_free: bool = False

class CourseView(CourseSummary):
    reviews: List[Review] = Field(default_factory=list)
    course_data: List[CourseContentItem] = Field(default_factory=list)

class CourseListItem(CourseSummary):
    course_data: List[CourseOutlineItem] = Field(default_factory=list)

class PurchasedCourse(CourseListItem):
    lesson_count: int = 0
    total_duration: str = "0.0 hours"

class InstructorDashboard(BaseModel):
    uploaded: List[CourseListItem] = Field(default_factory=list)
    purchased: List[CourseListItem] = Field(default_factory=list)
