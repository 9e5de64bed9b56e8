from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Union
from datetime import datetime

from app.core.constants import QuizDifficultyEnum, QuestionTypeEnum

Answer = Union[str, List[str]]

class QuizQuestionBase(BaseModel):
    text: str
    type: QuestionTypeEnum = QuestionTypeEnum.SINGLE_CHOICE
    points: float = Field(default=1, ge=0)
    options: List[str] = Field(default_factory=list)

    model_config = ConfigDict(use_enum_values=True)

class QuizQuestionCreate(QuizQuestionBase):
    correct_answer: Answer

class QuizQuestionUpdate(BaseModel):
    text: Optional[str] = None
    type: Optional[QuestionTypeEnum] = None
    points: Optional[float] = Field(default=None, ge=0)
    options: Optional[List[str]] = None
    correct_answer: Optional[Answer] = None

    model_config = ConfigDict(use_enum_values=True)

class QuizQuestionPublic(QuizQuestionBase):
    """A question as learners see it: no correct answer."""
    id: int

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

class QuizQuestion(QuizQuestionPublic):
    correct_answer: Answer

class QuizBase(BaseModel):
    title: str
    description: Optional[str] = None
    difficulty: QuizDifficultyEnum
    duration: int = Field(..., gt=0)
    passing_score: float = Field(..., ge=0)
    max_attempts: int = Field(..., gt=0)
    is_published: bool = False

    model_config = ConfigDict(use_enum_values=True)

class QuizCreate(QuizBase):
    course_id: int
    section_id: int
    questions: List[QuizQuestionCreate] = Field(default_factory=list)

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "course_id": 1,
                "section_id": 1,
                "title": "Intro check",
                "difficulty": "easy",
                "duration": 10,
                "passing_score": 2,
                "max_attempts": 3,
                "questions": [
                    {"text": "2 + 2?", "type": "single-choice", "points": 1, "options": ["3", "4"], "correct_answer": "4"}
                ]
            }
        }
    )

class QuizUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty: Optional[QuizDifficultyEnum] = None
    duration: Optional[int] = Field(default=None, gt=0)
    passing_score: Optional[float] = Field(default=None, ge=0)
    max_attempts: Optional[int] = Field(default=None, gt=0)
    is_published: Optional[bool] = None

    model_config = ConfigDict(use_enum_values=True)

class QuizScore(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    score: float
    attempted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class QuizPublic(QuizBase):
    id: int
    course_id: int
    section_id: int
    lesson_order: Optional[int] = None
    questions: List[QuizQuestionPublic] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

class Quiz(QuizPublic):
    instructor_id: int
    questions: List[QuizQuestion] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class QuizDetail(Quiz):
    scores: List[QuizScore] = Field(default_factory=list)

class QuizSubmit(BaseModel):
    """Answers indexed like the quiz's questions."""
    answers: List[Optional[Answer]]

class QuizResult(BaseModel):
    quiz_id: int
    score: float
    total_points: float
    passing_score: float
    is_passed: bool
    attempts_used: int
    max_attempts: int
