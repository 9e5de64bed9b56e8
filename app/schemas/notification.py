from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from app.core.constants import NotificationStatusEnum

class NotificationBase(BaseModel):
    """Base schema for a notification."""
    title: str
    message: str

class NotificationCreate(NotificationBase):
    """Schema for creating a notification."""
    user_id: int
    author_id: int
    course_id: Optional[int] = None

class NotificationUpdate(BaseModel):
    """Schema for updating a notification (e.g., marking as read)."""
    status: NotificationStatusEnum = NotificationStatusEnum.READ

    model_config = ConfigDict(use_enum_values=True)

class Notification(NotificationBase):
    """Schema for reading a notification, includes ID and status."""
    id: int
    user_id: int
    author_id: int
    course_id: Optional[int] = None
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
