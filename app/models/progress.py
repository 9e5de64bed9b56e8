from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, event, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class Progress(Base):
    __tablename__ = "progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    total_lessons = Column(Integer, nullable=False, default=0)
    total_completed = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='unique_user_course_progress'),
    )

    user = relationship("User")
    course = relationship("Course", back_populates="progress_records")
    completed_lessons = relationship("CompletedLesson", back_populates="progress", order_by="CompletedLesson.id", cascade="all, delete-orphan")

    def completed_by_section(self) -> dict:
        grouped: dict = {}
        for item in self.completed_lessons:
            grouped.setdefault(item.section_id, []).append(item.lesson_id)
        return grouped

    def recalculate_totals(self):
        self.total_completed = sum(len(lessons) for lessons in self.completed_by_section().values())


class CompletedLesson(Base):
    __tablename__ = "completed_lessons"

    id = Column(Integer, primary_key=True, index=True)
    progress_id = Column(Integer, ForeignKey("progress.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('progress_id', 'lesson_id', name='unique_progress_lesson'),
    )

    progress = relationship("Progress", back_populates="completed_lessons")


@event.listens_for(Progress, "before_insert")
@event.listens_for(Progress, "before_update")
def _sync_total_completed(mapper, connection, target):
    target.recalculate_totals()
