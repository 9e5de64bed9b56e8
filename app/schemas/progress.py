from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict

class ProgressUpdate(BaseModel):
    lesson_id: Optional[int] = None
    is_completed: bool = True

class SectionProgress(BaseModel):
    section_id: int
    completed_lessons: List[int] = Field(default_factory=list)

class CourseProgress(BaseModel):
    course_id: int
    user_id: int
    total_lessons: int = 0
    total_completed: int = 0
    completion_percentage: int = 0
    sections: List[SectionProgress] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

class ProgressSummary(BaseModel):
    items: List[CourseProgress] = Field(default_factory=list)
    by_course: Dict[int, int] = Field(default_factory=dict, description="course id to completion percentage")
