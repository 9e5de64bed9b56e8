from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Text, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import CourseLevelEnum

course_purchases = Table(
    "course_purchases",
    Base.metadata,
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0)
    estimated_price = Column(Float, nullable=True)
    thumbnail_public_id = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    tags = Column(String, nullable=True)
    # a CourseLevelEnum value or the name of a stored Level
    level = Column(String(100), nullable=False, default=CourseLevelEnum.BEGINNER.value)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    sub_category_id = Column(Integer, ForeignKey("sub_categories.id", ondelete="SET NULL"), nullable=True, index=True)
    demo_url = Column(String, nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    purchased = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # every write carries "WHERE version = <read version>"
    __mapper_args__ = {"version_id_col": version}

    author = relationship("User", back_populates="uploaded_courses")
    category = relationship("Category", back_populates="courses")
    sub_category = relationship("SubCategory", back_populates="courses")
    purchasers = relationship("User", secondary=course_purchases, back_populates="purchased_courses")
    sections = relationship("Section", back_populates="course", order_by="Section.order", cascade="all, delete-orphan")
    quizzes = relationship("Quiz", back_populates="course", cascade="all, delete-orphan")
    reviews = relationship("CourseReview", back_populates="course", order_by="CourseReview.id", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="course", cascade="all, delete-orphan")
    progress_records = relationship("Progress", back_populates="course", cascade="all, delete-orphan")
    orders = relationship("Order", secondary="order_courses", back_populates="courses")

    @property
    def thumbnail(self):
        if not self.thumbnail_url:
            return None
        return {"public_id": self.thumbnail_public_id, "url": self.thumbnail_url}

    @property
    def lessons(self):
        return [lesson for section in self.sections for lesson in section.lessons]

    def mark_content_changed(self):
        """Dirty the course row so the flush bumps (and checks) ``version``."""
        self.updated_at = datetime.utcnow()

    def recalculate_rating(self):
        if not self.reviews:
            self.rating = 0
            return
        self.rating = round(sum(r.rating for r in self.reviews) / len(self.reviews), 2)

    @property
    def purchaser_ids(self):
        return [user.id for user in self.purchasers]
