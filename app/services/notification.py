import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.cache_config import CACHE_KEYS, CACHE_TTL
from app.core.config import settings
from app.crud.notification import notification as crud_notification
from app.models.user import User
from app.schemas.notification import NotificationCreate, Notification
from app.services.cache_service import cache_service

logger = logging.getLogger(__name__)

class NotificationService:
    def create_notification(
        self, db: Session, *, user_id: int, author_id: int, title: str, message: str,
        course_id: Optional[int] = None, commit: bool = True
    ) -> Notification:
        notification_in = NotificationCreate(
            user_id=user_id, author_id=author_id, course_id=course_id, title=title, message=message
        )
        n = crud_notification.create(db, obj_in=notification_in, commit=commit)
        return Notification.model_validate(n)

    async def notify_author(
        self, db: Session, *, user_id: int, author_id: int, title: str, message: str, course_id: Optional[int] = None
    ) -> Notification:
        n = self.create_notification(
            db, user_id=user_id, author_id=author_id, title=title, message=message, course_id=course_id
        )
        await cache_service.invalidate_notification_cache(author_id)
        return n

    async def get_author_notifications(self, db: Session, *, current_user: User) -> List[Notification]:
        key = CACHE_KEYS["notifications"].format(current_user.id)
        cached = await cache.get(key)
        if cached is not None:
            return [Notification.model_validate(item) for item in cached]

        notifications = [
            Notification.model_validate(n)
            for n in crud_notification.get_for_author(db, author_id=current_user.id)
        ]
        await cache.set(key, [n.model_dump(mode="json") for n in notifications], ttl=CACHE_TTL["notifications"])
        return notifications

    async def mark_notification_as_read(self, db: Session, *, notification_id: int, current_user: User) -> List[Notification]:
        notification = crud_notification.get(db, id=notification_id)
        if not notification:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        if notification.author_id != current_user.id and not current_user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot update this notification")

        crud_notification.mark_as_read(db, notification_id=notification_id)
        db.commit()
        await cache_service.invalidate_notification_cache(notification.author_id)
        return await self.get_author_notifications(db, current_user=current_user)

    def purge_read_notifications(self, db: Session, *, older_than_days: Optional[int] = None) -> int:
        days = older_than_days if older_than_days is not None else settings.NOTIFICATION_RETENTION_DAYS
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        deleted = crud_notification.delete_read_before(db, cutoff=cutoff)
        logger.info(f"Purged {deleted} read notifications older than {days} days")
        return deleted

notification_service = NotificationService()
