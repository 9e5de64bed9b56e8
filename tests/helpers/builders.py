"""Build course content through the public API, the way an instructor would."""
from typing import Dict, List, Optional

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.cache import cache, MemoryCacheBackend
from app.crud.course import course as crud_course
from app.crud.section import section as crud_section
from tests.helpers.asserts import api_call

VIDEO = {"public_id": "lessons/intro", "url": "https://res.cloudinary.com/test/video/upload/lessons/intro.mp4"}


def drop_cache():
    """Forget every cached entry (used after writing to the store behind the API's back)."""
    cache.backend = MemoryCacheBackend()


def create_course(client: TestClient, headers: Dict[str, str], **overrides) -> dict:
    payload = {"name": "Python Basics", "description": "Learn Python", "price": 49.5, **overrides}
    return api_call(client, "POST", "/courses/", headers=headers, json=payload).json()["data"]


def create_section(client: TestClient, headers: Dict[str, str], db: Session, course_id: int, title: str = "Intro") -> int:
    api_call(client, "PUT", f"/courses/create-section/{course_id}", headers=headers, json={"title": title, "description": f"{title} section"})
    sections = crud_section.get_by_course(db, course_id=course_id)
    return next(s.id for s in sections if s.title == title)


def create_lesson(
    client: TestClient, headers: Dict[str, str], course_id: int, section_id: int, title: str,
    video: Optional[dict] = VIDEO, **fields
) -> int:
    payload = {"section_id": section_id, "title": title, "description": f"About {title}", "video_length": 10, **fields}
    if video:
        payload["video"] = video
    view = api_call(client, "PUT", f"/courses/create-lesson/{course_id}", headers=headers, json=payload).json()["data"]
    return lesson_id(view, title)


def lesson_id(view: dict, title: str) -> int:
    return next(item["id"] for item in view["course_data"] if item["title"] == title)


def lessons_of(view: dict, section_id: int) -> List[dict]:
    return [item for item in view["course_data"] if item["section_id"] == section_id and not item.get("is_quiz")]


def publish_lesson(client: TestClient, headers: Dict[str, str], course_id: int, lesson: int) -> dict:
    return api_call(client, "PUT", f"/courses/publish-lesson/{course_id}", headers=headers, json={"lesson_id": lesson}).json()["data"]


def publish_section(client: TestClient, headers: Dict[str, str], course_id: int, section_id: int) -> dict:
    return api_call(client, "PUT", f"/courses/publish-section/{course_id}", headers=headers, json={"section_id": section_id}).json()["data"]


def publish_course(client: TestClient, headers: Dict[str, str], course_id: int) -> dict:
    return api_call(client, "PUT", f"/courses/publish/{course_id}", headers=headers).json()["data"]


def build_published_course(client: TestClient, headers: Dict[str, str], db: Session, lessons: int = 2, **overrides) -> dict:
    """A published course with one published section holding ``lessons`` visible lessons; lesson 1 is free."""
    new_course = create_course(client, headers, **overrides)
    section_id = create_section(client, headers, db, new_course["id"])
    lesson_ids = []
    for index in range(1, lessons + 1):
        lesson = create_lesson(client, headers, new_course["id"], section_id, f"Lesson {index}", is_free=index == 1)
        publish_lesson(client, headers, new_course["id"], lesson)
        lesson_ids.append(lesson)
    publish_section(client, headers, new_course["id"], section_id)
    publish_course(client, headers, new_course["id"])
    return {"course_id": new_course["id"], "section_id": section_id, "lesson_ids": lesson_ids}


def grant_purchase(db: Session, course_id: int, buyer) -> None:
    course = crud_course.get(db, id=course_id)
    course.purchasers.append(buyer)
    course.purchased = (course.purchased or 0) + 1
    db.commit()
    drop_cache()
