from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.schemas.user import UserSummary

class QuestionCreate(BaseModel):
    course_id: int
    lesson_id: int
    question: str

    @field_validator("question")
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Question cannot be empty")
        return v

class AnswerCreate(BaseModel):
    course_id: int
    lesson_id: int
    question_id: int
    answer: str

    @field_validator("answer")
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Answer cannot be empty")
        return v

class QuestionReply(BaseModel):
    id: int
    user_id: int
    user: Optional[UserSummary] = None
    answer: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LessonQuestion(BaseModel):
    id: int
    lesson_id: int
    user_id: int
    user: Optional[UserSummary] = None
    question: str
    created_at: Optional[datetime] = None
    replies: List[QuestionReply] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
