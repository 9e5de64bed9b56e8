from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Float, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import QuizDifficultyEnum, QuestionTypeEnum


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, unique=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(Enum(QuizDifficultyEnum, values_callable=lambda e: [m.value for m in e]), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    passing_score = Column(Float, nullable=False)
    max_attempts = Column(Integer, nullable=False)
    is_published = Column(Boolean, nullable=False, default=False)
    lesson_order = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course = relationship("Course", back_populates="quizzes")
    section = relationship("Section", back_populates="quizzes")
    instructor = relationship("User")
    questions = relationship("QuizQuestion", back_populates="quiz", order_by="QuizQuestion.id", cascade="all, delete-orphan")
    scores = relationship("QuizScore", back_populates="quiz", order_by="QuizScore.id", cascade="all, delete-orphan")


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    type = Column(Enum(QuestionTypeEnum, values_callable=lambda e: [m.value for m in e]), nullable=False)
    points = Column(Float, nullable=False)
    options = Column(JSON, nullable=False, default=list)
    correct_answer = Column(JSON, nullable=False)

    quiz = relationship("Quiz", back_populates="questions")


class QuizScore(Base):
    __tablename__ = "quiz_scores"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    score = Column(Float, nullable=False, default=0)
    attempted_at = Column(DateTime(timezone=True), server_default=func.now())

    quiz = relationship("Quiz", back_populates="scores")
    user = relationship("User")

    @property
    def user_name(self):
        return self.user.name if self.user else None
