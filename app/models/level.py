from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.core.database import Base

class Level(Base):
    """A course level added on top of the built-in ``CourseLevelEnum`` values."""
    __tablename__ = "levels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)  # stored lowercase
    created_at = Column(DateTime(timezone=True), server_default=func.now())
