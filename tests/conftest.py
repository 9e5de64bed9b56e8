import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "true"
os.environ.pop("REDIS_URL", None)

import uuid
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.core.database import Base, get_db
from app.core.cache import cache, MemoryCacheBackend
from app.core.constants import RoleEnum
from app.models import (  # noqa: F401
    user, category, level, course, section, lesson, lesson_question, course_review, quiz, progress, order, notification,
)
from app.models.user import User
from app.services.email import EmailService
import main


@pytest.fixture(scope="function")
def database_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(autouse=True)
def _fresh_cache(monkeypatch):
    monkeypatch.setattr(cache, "backend", MemoryCacheBackend())

@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Captures outgoing mail instead of calling SendGrid."""
    sent = []

    async def fake_send(to_email, subject, template_name, template_context):
        EmailService.render_template(template_name, template_context)
        sent.append({"to_email": to_email, "subject": subject, "template_name": template_name, "context": template_context})

    monkeypatch.setattr(EmailService, "_send_email_via_sendgrid", fake_send)
    return sent

@pytest.fixture(autouse=True)
def cloudinary_calls(monkeypatch):
    calls = {"upload": [], "destroy": []}

    def fake_upload(file, folder=None, resource_type="image", **kwargs):
        calls["upload"].append({"file": file, "folder": folder, "resource_type": resource_type})
        public_id = f"{folder}/{uuid.uuid4().hex[:8]}"
        return {"public_id": public_id, "secure_url": f"https://res.cloudinary.com/test/{resource_type}/upload/{public_id}"}

    def fake_destroy(public_id, resource_type="image", **kwargs):
        calls["destroy"].append({"public_id": public_id, "resource_type": resource_type})
        return {"result": "ok"}

    monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)
    monkeypatch.setattr("cloudinary.uploader.destroy", fake_destroy)
    return calls

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def user_factory(db_session):
    def _create(role: RoleEnum = RoleEnum.USER, name: str = None, is_active: bool = True) -> User:
        suffix = uuid.uuid4().hex[:8]
        new_user = User(
            name=name or f"{role.value.title()} {suffix}",
            email=f"{role.value}-{suffix}@test.com",
            role=role.value,
            is_active=is_active,
        )
        db_session.add(new_user)
        db_session.commit()
        db_session.refresh(new_user)
        return new_user
    return _create

@pytest.fixture
def instructor(user_factory):
    return user_factory(RoleEnum.INSTRUCTOR, name="Ada Instructor")

@pytest.fixture
def learner(user_factory):
    return user_factory(RoleEnum.USER, name="Lin Learner")

@pytest.fixture
def admin(user_factory):
    return user_factory(RoleEnum.ADMIN, name="Sam Admin")
