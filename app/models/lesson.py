from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=0)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    video_public_id = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    video_length = Column(Integer, nullable=True)  # minutes
    video_player = Column(String, nullable=True)
    suggestion = Column(Text, nullable=True)
    links = Column(JSON, nullable=False, default=list)
    is_published = Column(Boolean, nullable=False, default=False)
    is_free = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    section = relationship("Section", back_populates="lessons")
    questions = relationship("LessonQuestion", back_populates="lesson", order_by="LessonQuestion.id", cascade="all, delete-orphan")

    @property
    def video(self):
        if not self.video_url:
            return None
        return {"public_id": self.video_public_id, "url": self.video_url}

    @property
    def is_placeholder(self) -> bool:
        return not self.title

    def clear_content(self):
        self.title = None
        self.description = None
        self.video_length = None
        self.video_public_id = None
        self.video_url = None
        self.suggestion = None
        self.links = []
        self.is_free = False
        self.is_published = False
