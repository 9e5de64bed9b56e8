from sqlalchemy import Boolean, Column, String, Integer, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import RoleEnum
from app.models.course import course_purchases

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False, default=RoleEnum.USER.value)
    avatar = Column(String, nullable=True)
    is_active = Column(Boolean(), default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    uploaded_courses = relationship("Course", back_populates="author")
    purchased_courses = relationship("Course", secondary=course_purchases, back_populates="purchasers")
    orders = relationship("Order", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN.value

    @property
    def is_instructor(self) -> bool:
        return self.role in (RoleEnum.INSTRUCTOR.value, RoleEnum.ADMIN.value)
