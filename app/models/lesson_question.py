from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class LessonQuestion(Base):
    __tablename__ = "lesson_questions"

    id = Column(Integer, primary_key=True, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    question = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lesson = relationship("Lesson", back_populates="questions")
    user = relationship("User")
    replies = relationship("QuestionReply", back_populates="question", order_by="QuestionReply.id", cascade="all, delete-orphan")


class QuestionReply(Base):
    __tablename__ = "question_replies"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("lesson_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    answer = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    question = relationship("LessonQuestion", back_populates="replies")
    user = relationship("User")
