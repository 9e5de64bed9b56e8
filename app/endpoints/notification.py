from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.models.user import User
from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.notification import Notification
from app.services.notification import notification_service

router = APIRouter()

@router.get("/", response_model=APIResponse[List[Notification]])
async def get_my_notifications(
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    """Notifications addressed to the current instructor, newest first."""
    data = await notification_service.get_author_notifications(db, current_user=user)
    return APIResponse(message="Notifications fetched successfully", data=data)

@router.put("/{notification_id}", response_model=APIResponse[List[Notification]])
async def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_instructor)
):
    """Mark a notification as read and return the refreshed list."""
    data = await notification_service.mark_notification_as_read(db, notification_id=notification_id, current_user=user)
    return APIResponse(message="Notification marked as read", data=data)
