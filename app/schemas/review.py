from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.user import UserSummary

class ReviewCreate(BaseModel):
    rating: float = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class ReviewReplyCreate(BaseModel):
    course_id: int
    review_id: int
    comment: str = Field(..., min_length=1)

class ReviewReply(BaseModel):
    id: int
    user_id: int
    user: Optional[UserSummary] = None
    comment: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Review(BaseModel):
    id: int
    course_id: int
    user_id: int
    user: Optional[UserSummary] = None
    rating: float
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    replies: List[ReviewReply] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
