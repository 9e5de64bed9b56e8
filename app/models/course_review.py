from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Float, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class CourseReview(Base):
    __tablename__ = "course_reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='unique_user_course_review'),
    )

    user = relationship("User")
    course = relationship("Course", back_populates="reviews")
    replies = relationship("ReviewReply", back_populates="review", order_by="ReviewReply.id", cascade="all, delete-orphan")


class ReviewReply(Base):
    __tablename__ = "review_replies"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("course_reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    review = relationship("CourseReview", back_populates="replies")
    user = relationship("User")
