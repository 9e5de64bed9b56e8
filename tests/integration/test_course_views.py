from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from tests.helpers.asserts import api_call, assert_error, auth_headers
from tests.helpers.builders import (
    build_published_course, create_course, create_lesson, create_section, grant_purchase, lessons_of,
)


def _quiz_payload(course_id: int, section_id: int, **overrides) -> dict:
    return {
        "course_id": course_id,
        "section_id": section_id,
        "title": "Checkpoint",
        "difficulty": "easy",
        "duration": 15,
        "passing_score": 1,
        "max_attempts": 2,
        "is_published": True,
        "questions": [
            {"text": "2 + 2?", "type": "single-choice", "points": 1, "options": ["3", "4"], "correct_answer": "4"}
        ],
        **overrides,
    }


def test_preview_never_exposes_paid_videos(client: TestClient, db_session: Session, instructor, learner):
    built = build_published_course(client, auth_headers(instructor), db_session, lessons=2)

    for headers in (None, auth_headers(learner), auth_headers(instructor)):
        view = api_call(client, "GET", f"/courses/{built['course_id']}", headers=headers).json()["data"]
        free, paid = view["course_data"]
        assert free["is_free"] is True and free["video"] is not None
        assert paid["is_free"] is False and paid["video"] is None
        for item in view["course_data"]:
            assert item["suggestion"] is None
            assert item["links"] == []
            assert item["questions"] == []


def test_incomplete_lessons_are_hidden_from_learners(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    create_lesson(client, headers, built["course_id"], built["section_id"], "Draft", video=None)

    preview = api_call(client, "GET", f"/courses/{built['course_id']}").json()["data"]
    assert [item["title"] for item in preview["course_data"]] == ["Lesson 1"]

    uploaded = api_call(client, "GET", f"/courses/uploaded/{built['course_id']}", headers=headers).json()["data"]
    assert [item["title"] for item in uploaded["course_data"]] == ["Lesson 1", "Draft"]


def test_unpublished_course_preview_is_hidden_from_everyone_but_its_managers(client: TestClient, db_session: Session, instructor, learner, admin):
    new_course = create_course(client, auth_headers(instructor))

    assert_error(client.get(f"/courses/{new_course['id']}"), 404, "Course not found")
    assert_error(client.get(f"/courses/{new_course['id']}", headers=auth_headers(learner)), 404)
    api_call(client, "GET", f"/courses/{new_course['id']}", headers=auth_headers(instructor))
    api_call(client, "GET", f"/courses/{new_course['id']}", headers=auth_headers(admin))


def test_full_view_requires_purchase(client: TestClient, db_session: Session, instructor, learner):
    built = build_published_course(client, auth_headers(instructor), db_session, lessons=2)

    r = client.get(f"/courses/purchased/{built['course_id']}", headers=auth_headers(learner))
    assert_error(r, 403, "You are not eligible to access this course")

    grant_purchase(db_session, built["course_id"], learner)
    view = api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=auth_headers(learner)).json()["data"]
    assert all(item["video"] is not None for item in view["course_data"])


def test_full_view_appends_one_quiz_item_per_section(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=2)
    api_call(client, "POST", "/quizzes/create-quiz", headers=headers, json=_quiz_payload(built["course_id"], built["section_id"]))
    grant_purchase(db_session, built["course_id"], learner)

    view = api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=auth_headers(learner)).json()["data"]
    items = view["course_data"]

    assert [item["is_quiz"] for item in items] == [False, False, True]
    quiz_item = items[-1]
    assert quiz_item["id"] == f"quiz-section-{built['section_id']}"
    assert quiz_item["lesson_order"] == 3
    assert quiz_item["video_length"] == 15
    assert quiz_item["title"] == "Quiz for Intro"
    assert len(quiz_item["quizzes"]) == 1
    assert all("correct_answer" not in question for question in quiz_item["quizzes"][0]["questions"])
    # two 10 minute lessons plus the 15 minute quiz
    assert {item["section_duration"] for item in items} == {35}


def test_quiz_item_follows_the_highest_lesson_order(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=2)
    first, second = built["lesson_ids"]
    api_call(client, "POST", "/quizzes/create-quiz", headers=headers, json=_quiz_payload(built["course_id"], built["section_id"]))
    api_call(
        client, "PUT", f"/courses/reorder-lesson/{built['course_id']}", headers=headers,
        json=[{"id": first, "order": 1}, {"id": second, "order": 5}]
    )
    grant_purchase(db_session, built["course_id"], learner)

    items = api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=auth_headers(learner)).json()["data"]["course_data"]

    assert [(item["is_quiz"], item["lesson_order"]) for item in items] == [(False, 1), (False, 5), (True, 6)]


def test_unpublished_quizzes_add_no_quiz_item(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    api_call(client, "POST", "/quizzes/create-quiz", headers=headers,
             json=_quiz_payload(built["course_id"], built["section_id"], is_published=False))

    view = api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=headers).json()["data"]
    assert [item["is_quiz"] for item in view["course_data"]] == [False]


def test_full_view_orders_sections_then_lessons(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=2)
    later = create_section(client, headers, db_session, built["course_id"], "Later")
    extra = create_lesson(client, headers, built["course_id"], later, "Extra")
    api_call(client, "PUT", f"/courses/publish-lesson/{built['course_id']}", headers=headers, json={"lesson_id": extra})
    api_call(client, "PUT", f"/courses/publish-section/{built['course_id']}", headers=headers, json={"section_id": later})
    api_call(client, "PUT", f"/courses/reorder-section/{built['course_id']}", headers=headers, json=[{"id": later, "order": 0}])

    view = api_call(client, "GET", f"/courses/purchased/{built['course_id']}", headers=headers).json()["data"]
    assert [item["title"] for item in view["course_data"]] == ["Extra", "Lesson 1", "Lesson 2"]
    assert len(lessons_of(view, built["section_id"])) == 2


def test_catalogue_lists_published_courses_without_content(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=2, name="Published")
    create_course(client, headers, name="Hidden draft")

    courses = api_call(client, "GET", "/courses/").json()["data"]
    assert [course["name"] for course in courses] == ["Published"]
    outline = courses[0]["course_data"]
    assert [item["id"] for item in outline] == built["lesson_ids"]
    for item in outline:
        assert "video" not in item
        assert "links" not in item
        assert "questions" not in item


def test_purchased_courses_report_lesson_count_and_duration(client: TestClient, db_session: Session, instructor, learner):
    built = build_published_course(client, auth_headers(instructor), db_session, lessons=2)
    grant_purchase(db_session, built["course_id"], learner)

    courses = api_call(client, "GET", "/courses/purchased", headers=auth_headers(learner)).json()["data"]
    assert len(courses) == 1
    assert courses[0]["lesson_count"] == 2
    assert courses[0]["total_duration"] == "0.3 hours"


def test_dashboard_splits_uploaded_and_purchased(client: TestClient, db_session: Session, instructor, user_factory):
    built = build_published_course(client, auth_headers(instructor), db_session, lessons=1)
    other = user_factory(RoleEnum.INSTRUCTOR)
    grant_purchase(db_session, built["course_id"], other)

    mine = api_call(client, "GET", "/courses/mine", headers=auth_headers(instructor)).json()["data"]
    assert [course["id"] for course in mine["uploaded"]] == [built["course_id"]]
    assert mine["purchased"] == []

    theirs = api_call(client, "GET", "/courses/mine", headers=auth_headers(other)).json()["data"]
    assert theirs["uploaded"] == []
    assert [course["id"] for course in theirs["purchased"]] == [built["course_id"]]
