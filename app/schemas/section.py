from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

from app.schemas.lesson import Lesson
from app.schemas.quiz import Quiz

class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None

class SectionUpdate(BaseModel):
    section_id: int
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None

class SectionRef(BaseModel):
    section_id: int

class OrderItem(BaseModel):
    """One entry of a reorder request: move ``id`` to position ``order``."""
    id: int
    order: int

class Section(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    order: int
    is_published: bool = False
    lessons: List[Lesson] = Field(default_factory=list)
    quizzes: List[Quiz] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
