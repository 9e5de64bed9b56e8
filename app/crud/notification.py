from datetime import datetime
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.constants import NotificationStatusEnum
from app.crud.base import CRUDBase
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate, NotificationUpdate

class CRUDNotification(CRUDBase[Notification, NotificationCreate, NotificationUpdate]):
    """CRUD operations for Notifications."""

    def get_for_author(self, db: Session, *, author_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return (
            db.query(self.model)
            .filter(self.model.author_id == author_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def mark_as_read(self, db: Session, *, notification_id: int) -> Optional[Notification]:
        notification = self.get(db, id=notification_id)
        if notification:
            notification.status = NotificationStatusEnum.READ.value
            db.add(notification)
        return notification

    def delete_read_before(self, db: Session, *, cutoff: datetime) -> int:
        deleted = (
            db.query(self.model)
            .filter(
                self.model.status == NotificationStatusEnum.READ.value,
                self.model.created_at < cutoff,
            )
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

notification = CRUDNotification(Notification)
