import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.notification import Notification
from tests.helpers.asserts import api_call, assert_error, auth_headers
from tests.helpers.builders import VIDEO, build_published_course, create_course, grant_purchase

THUMBNAIL = "data:image/png;base64,iVBORw0KGgo="


def _titles_for(db: Session, author_id: int):
    db.expire_all()
    return [n.title for n in db.query(Notification).filter(Notification.author_id == author_id).order_by(Notification.id)]


def test_thumbnail_is_uploaded_and_replaced(client: TestClient, instructor, cloudinary_calls):
    headers = auth_headers(instructor)

    course = create_course(client, headers, thumbnail=THUMBNAIL)
    first = course["thumbnail"]["public_id"]
    assert first.startswith("courses/")
    assert cloudinary_calls["upload"] == [{"file": THUMBNAIL, "folder": "courses", "resource_type": "image"}]

    updated = api_call(client, "PUT", f"/courses/{course['id']}", headers=headers, json={"thumbnail": THUMBNAIL}).json()["data"]
    assert updated["thumbnail"]["public_id"] != first
    assert cloudinary_calls["destroy"] == [{"public_id": first, "resource_type": "image"}]


def test_update_course_fields(client: TestClient, instructor, cloudinary_calls):
    headers = auth_headers(instructor)
    course = create_course(client, headers)

    updated = api_call(client, "PUT", f"/courses/{course['id']}", headers=headers, json={"name": "Python Deep Dive", "price": 80}).json()["data"]

    assert updated["name"] == "Python Deep Dive"
    assert updated["price"] == 80
    assert updated["description"] == "Learn Python"
    assert cloudinary_calls["upload"] == []


def test_delete_course_removes_its_thumbnail(client: TestClient, instructor, cloudinary_calls):
    headers = auth_headers(instructor)
    course = create_course(client, headers, thumbnail=THUMBNAIL)

    api_call(client, "DELETE", f"/courses/{course['id']}", headers=headers)

    assert [c["public_id"] for c in cloudinary_calls["destroy"]] == [course["thumbnail"]["public_id"]]
    assert_error(client.get(f"/courses/{course['id']}", headers=headers), 404, "Course not found")


def test_thumbnail_is_destroyed_only_after_the_course_is_gone(client: TestClient, db_session: Session, instructor, monkeypatch):
    headers = auth_headers(instructor)
    course = create_course(client, headers, thumbnail=THUMBNAIL)
    seen = []

    def fake_destroy(public_id, resource_type="image", **kwargs):
        db_session.expire_all()
        seen.append((public_id, db_session.get(Course, course["id"])))
        return {"result": "ok"}

    monkeypatch.setattr("cloudinary.uploader.destroy", fake_destroy)
    api_call(client, "DELETE", f"/courses/{course['id']}", headers=headers)

    assert seen == [(course["thumbnail"]["public_id"], None)]


def test_upload_lesson_video_replaces_the_previous_asset(client: TestClient, db_session: Session, instructor, cloudinary_calls):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    lesson = built["lesson_ids"][0]

    view = api_call(
        client, "PUT", f"/courses/upload-lesson-video/{built['course_id']}", headers=headers,
        json={"lesson_id": lesson, "video": "https://example.com/raw.mp4"}
    ).json()["data"]

    assert cloudinary_calls["upload"] == [{"file": "https://example.com/raw.mp4", "folder": "lessons", "resource_type": "video"}]
    assert cloudinary_calls["destroy"] == [{"public_id": VIDEO["public_id"], "resource_type": "video"}]
    item = next(i for i in view["course_data"] if i["id"] == lesson)
    assert item["video"]["public_id"].startswith("lessons/")


def test_failed_upload_keeps_the_old_video(client: TestClient, db_session: Session, instructor, cloudinary_calls, monkeypatch):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)

    def broken_upload(*args, **kwargs):
        raise ConnectionError("cloudinary unreachable")

    monkeypatch.setattr("cloudinary.uploader.upload", broken_upload)
    r = client.put(
        f"/courses/upload-lesson-video/{built['course_id']}", headers=headers,
        json={"lesson_id": built["lesson_ids"][0], "video": "https://example.com/raw.mp4"}
    )

    assert_error(r, 502, "Media upload failed")
    assert cloudinary_calls["destroy"] == []
    view = api_call(client, "GET", f"/courses/uploaded/{built['course_id']}", headers=headers).json()["data"]
    assert view["course_data"][0]["video"]["public_id"] == VIDEO["public_id"]


def test_reviews_from_purchasers(client: TestClient, db_session: Session, instructor, learner, user_factory):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session)
    course_id = built["course_id"]
    other = user_factory()
    grant_purchase(db_session, course_id, learner)
    grant_purchase(db_session, course_id, other)

    api_call(client, "PUT", f"/courses/add-review/{course_id}", headers=auth_headers(learner), json={"rating": 5, "comment": "Great"})
    view = api_call(client, "PUT", f"/courses/add-review/{course_id}", headers=auth_headers(other), json={"rating": 4}).json()["data"]

    assert view["rating"] == 4.5
    assert [r["rating"] for r in view["reviews"]] == [5, 4]
    assert _titles_for(db_session, instructor.id) == ["New Review Received", "New Review Received"]

    r = client.put(f"/courses/add-review/{course_id}", headers=auth_headers(learner), json={"rating": 1})
    assert_error(r, 409, "You have already reviewed this course")


def test_review_requires_a_purchase_and_a_valid_rating(client: TestClient, db_session: Session, instructor, learner):
    built = build_published_course(client, auth_headers(instructor), db_session)

    r = client.put(f"/courses/add-review/{built['course_id']}", headers=auth_headers(learner), json={"rating": 5})
    assert_error(r, 403, "You are not eligible to access this course")

    grant_purchase(db_session, built["course_id"], learner)
    r = client.put(f"/courses/add-review/{built['course_id']}", headers=auth_headers(learner), json={"rating": 9})
    assert_error(r, 422)


def test_author_replies_to_a_review(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session)
    grant_purchase(db_session, built["course_id"], learner)
    review = api_call(
        client, "PUT", f"/courses/add-review/{built['course_id']}", headers=auth_headers(learner), json={"rating": 5}
    ).json()["data"]["reviews"][0]

    payload = {"course_id": built["course_id"], "review_id": review["id"], "comment": "Thanks!"}
    view = api_call(client, "PUT", "/courses/add-reply", headers=headers, json=payload).json()["data"]
    assert [r["comment"] for r in view["reviews"][0]["replies"]] == ["Thanks!"]

    assert_error(client.put("/courses/add-reply", headers=auth_headers(learner), json=payload), 403)
    missing = {**payload, "review_id": 9999}
    assert_error(client.put("/courses/add-reply", headers=headers, json=missing), 404, "Review not found")


@pytest.fixture
def discussion(client: TestClient, db_session: Session, instructor, learner):
    built = build_published_course(client, auth_headers(instructor), db_session)
    grant_purchase(db_session, built["course_id"], learner)
    lesson = built["lesson_ids"][0]
    view = api_call(
        client, "PUT", "/courses/add-question", headers=auth_headers(learner),
        json={"course_id": built["course_id"], "lesson_id": lesson, "question": "Why indentation?"}
    ).json()["data"]
    question = next(i for i in view["course_data"] if i["id"] == lesson)["questions"][0]
    return {"course_id": built["course_id"], "lesson_id": lesson, "question_id": question["id"]}


def test_question_notifies_the_author(db_session: Session, instructor, learner, discussion):
    assert _titles_for(db_session, instructor.id) == ["New Question Received"]


def test_author_answer_emails_the_asker(client: TestClient, db_session: Session, instructor, learner, discussion, sent_emails):
    view = api_call(
        client, "PUT", "/courses/add-answer", headers=auth_headers(instructor), json={**discussion, "answer": "It is the syntax."}
    ).json()["data"]

    item = next(i for i in view["course_data"] if i["id"] == discussion["lesson_id"])
    assert [r["answer"] for r in item["questions"][0]["replies"]] == ["It is the syntax."]
    assert [(m["to_email"], m["template_name"]) for m in sent_emails] == [(learner.email, "question-reply.html")]
    assert sent_emails[0]["context"]["title"] == "Lesson 1"
    assert _titles_for(db_session, instructor.id) == ["New Question Received"]


def test_asker_follow_up_notifies_the_author(client: TestClient, db_session: Session, instructor, learner, discussion, sent_emails):
    api_call(client, "PUT", "/courses/add-answer", headers=auth_headers(learner), json={**discussion, "answer": "Found it, thanks"})

    assert sent_emails == []
    assert _titles_for(db_session, instructor.id) == ["New Question Received", "New Question Reply Received"]


def test_discussion_needs_access_and_a_known_lesson(client: TestClient, db_session: Session, user_factory, discussion):
    stranger = user_factory()
    r = client.put("/courses/add-question", headers=auth_headers(stranger), json={**discussion, "question": "Hi?"})
    assert_error(r, 403)

    buyer = user_factory()
    grant_purchase(db_session, discussion["course_id"], buyer)
    r = client.put("/courses/add-question", headers=auth_headers(buyer), json={**discussion, "lesson_id": 9999, "question": "Hi?"})
    assert_error(r, 404, "Lesson does not exist")
    r = client.put("/courses/add-answer", headers=auth_headers(buyer), json={**discussion, "question_id": 9999, "answer": "x"})
    assert_error(r, 404, "Question not found")
