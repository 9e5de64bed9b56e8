from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.core import scheduler
from app.core.constants import NotificationStatusEnum, RoleEnum
from app.models.notification import Notification
from app.services.notification import notification_service
from tests.helpers.asserts import api_call, assert_error, auth_headers


def _notify(db: Session, author, sender, title: str, status: str = NotificationStatusEnum.UNREAD.value, age_days: int = 0) -> Notification:
    n = Notification(
        user_id=sender.id, author_id=author.id, title=title, message=f"{title} message", status=status,
        created_at=datetime.utcnow() - timedelta(days=age_days),
    )
    db.add(n)
    db.commit()
    db.refresh(n)
    return n


def test_instructor_sees_own_notifications_newest_first(client: TestClient, db_session: Session, instructor, learner, user_factory):
    other = user_factory(name="Other Instructor")
    _notify(db_session, instructor, learner, "Older", age_days=2)
    _notify(db_session, instructor, learner, "Newer")
    _notify(db_session, other, learner, "Not mine")

    data = api_call(client, "GET", "/notifications/", headers=auth_headers(instructor)).json()["data"]

    assert [n["title"] for n in data] == ["Newer", "Older"]
    assert {n["status"] for n in data} == {"unread"}


def test_mark_as_read_returns_the_refreshed_list(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    n = _notify(db_session, instructor, learner, "New Order")
    api_call(client, "GET", "/notifications/", headers=headers)

    data = api_call(client, "PUT", f"/notifications/{n.id}", headers=headers).json()["data"]

    assert [(item["id"], item["status"]) for item in data] == [(n.id, "read")]


def test_mark_as_read_checks_ownership(client: TestClient, db_session: Session, instructor, learner, user_factory):
    other = user_factory(RoleEnum.INSTRUCTOR)
    n = _notify(db_session, instructor, learner, "New Order")

    assert_error(client.put(f"/notifications/{n.id}", headers=auth_headers(other)), 403, "You cannot update this notification")
    assert_error(client.put("/notifications/9999", headers=auth_headers(instructor)), 404, "Notification not found")
    assert_error(client.get("/notifications/", headers=auth_headers(learner)), 403)


def test_purge_deletes_only_old_read_notifications(db_session: Session, instructor, learner):
    _notify(db_session, instructor, learner, "old read", status="read", age_days=40)
    _notify(db_session, instructor, learner, "recent read", status="read", age_days=1)
    _notify(db_session, instructor, learner, "old unread", age_days=40)

    deleted = notification_service.purge_read_notifications(db_session)

    assert deleted == 1
    remaining = [n.title for n in db_session.query(Notification).order_by(Notification.id)]
    assert remaining == ["recent read", "old unread"]


def test_purge_honours_a_custom_window(db_session: Session, instructor, learner):
    _notify(db_session, instructor, learner, "week old", status="read", age_days=7)

    assert notification_service.purge_read_notifications(db_session, older_than_days=10) == 0
    assert notification_service.purge_read_notifications(db_session, older_than_days=5) == 1


async def test_scheduled_purge_uses_its_own_session(database_engine, db_session: Session, instructor, learner, monkeypatch):
    _notify(db_session, instructor, learner, "old read", status="read", age_days=40)
    monkeypatch.setattr(scheduler, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=database_engine))

    await scheduler.purge_read_notifications()

    db_session.expire_all()
    assert db_session.query(Notification).count() == 0


def test_scheduler_stays_off_under_test():
    scheduler.start_scheduler()
    assert not scheduler.scheduler.running
