from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.helpers.asserts import api_call, assert_error, auth_headers
from tests.helpers.builders import build_published_course, create_section, grant_purchase


def _quiz_payload(course_id: int, section_id: int, **overrides) -> dict:
    return {
        "course_id": course_id,
        "section_id": section_id,
        "title": "Basics check",
        "difficulty": "medium",
        "duration": 10,
        "passing_score": 2,
        "max_attempts": 2,
        "is_published": True,
        "questions": [
            {"text": "2 + 2?", "type": "single-choice", "points": 1, "options": ["3", "4"], "correct_answer": "4"},
            {"text": "Pick the primes", "type": "multiple-choice", "points": 2, "options": ["2", "3", "4"], "correct_answer": ["2", "3"]},
        ],
        **overrides,
    }


def _create_quiz(client: TestClient, headers, built: dict, **overrides) -> dict:
    payload = _quiz_payload(built["course_id"], built["section_id"], **overrides)
    return api_call(client, "POST", "/quizzes/create-quiz", headers=headers, json=payload).json()["data"]


def test_create_quiz_places_it_after_the_last_lesson(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=3)

    quiz = _create_quiz(client, headers, built)

    assert quiz["lesson_order"] == 4
    assert quiz["instructor_id"] == instructor.id
    assert [q["correct_answer"] for q in quiz["questions"]] == ["4", ["2", "3"]]


def test_a_section_holds_a_single_quiz(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    _create_quiz(client, headers, built)

    r = client.post("/quizzes/create-quiz", headers=headers, json=_quiz_payload(built["course_id"], built["section_id"]))
    assert_error(r, 409, "This section already has a quiz")


def test_create_quiz_validates_references_and_answers(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)

    r = client.post("/quizzes/create-quiz", headers=headers, json=_quiz_payload(9999, built["section_id"]))
    assert_error(r, 404, "Course not found")
    r = client.post("/quizzes/create-quiz", headers=headers, json=_quiz_payload(built["course_id"], 9999))
    assert_error(r, 404, "Section does not exist")

    bad_answer = _quiz_payload(built["course_id"], built["section_id"], questions=[
        {"text": "Colour?", "type": "single-choice", "points": 1, "options": ["red"], "correct_answer": "blue"}
    ])
    assert_error(client.post("/quizzes/create-quiz", headers=headers, json=bad_answer), 400, "Correct answer must be one of the options")

    r = client.post("/quizzes/create-quiz", headers=headers, json={"course_id": built["course_id"], "section_id": built["section_id"]})
    assert_error(r, 422)


def test_quiz_listings_are_for_instructors(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    quiz = _create_quiz(client, headers, built)

    assert [q["id"] for q in api_call(client, "GET", "/quizzes/", headers=headers).json()["data"]] == [quiz["id"]]
    assert api_call(client, "GET", "/quizzes/?difficulty=hard", headers=headers).json()["data"] == []
    assert len(api_call(client, "GET", f"/quizzes/course/{built['course_id']}", headers=headers).json()["data"]) == 1
    assert len(api_call(client, "GET", f"/quizzes/section/{built['section_id']}", headers=headers).json()["data"]) == 1

    assert_error(client.get("/quizzes/", headers=auth_headers(learner)), 403)


def test_quiz_list_cache_is_dropped_on_update(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    quiz = _create_quiz(client, headers, built)
    api_call(client, "GET", "/quizzes/", headers=headers)

    api_call(client, "PUT", f"/quizzes/{quiz['id']}", headers=headers, json={"title": "Renamed"})

    listed = api_call(client, "GET", "/quizzes/", headers=headers).json()["data"]
    assert [q["title"] for q in listed] == ["Renamed"]


def test_submit_scores_exact_answers_and_limits_attempts(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    quiz = _create_quiz(client, headers, built)
    grant_purchase(db_session, built["course_id"], learner)
    learner_headers = auth_headers(learner)

    result = api_call(
        client, "POST", f"/quizzes/{quiz['id']}/submit", headers=learner_headers,
        json={"answers": ["3", ["3", "2"]]}
    ).json()["data"]
    assert result["score"] == 2
    assert result["total_points"] == 3
    assert result["is_passed"] is True
    assert result["attempts_used"] == 1

    result = api_call(
        client, "POST", f"/quizzes/{quiz['id']}/submit", headers=learner_headers, json={"answers": ["4"]}
    ).json()["data"]
    assert result["score"] == 1
    assert result["is_passed"] is False

    r = client.post(f"/quizzes/{quiz['id']}/submit", headers=learner_headers, json={"answers": ["4", ["2", "3"]]})
    assert_error(r, 400, "Maximum attempts reached for this quiz")

    detail = api_call(client, "GET", f"/quizzes/{quiz['id']}", headers=headers).json()["data"]
    assert [(s["user_name"], s["score"]) for s in detail["scores"]] == [("Lin Learner", 2), ("Lin Learner", 1)]


def test_submit_requires_access_to_the_course(client: TestClient, db_session: Session, instructor, learner):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    quiz = _create_quiz(client, headers, built)

    r = client.post(f"/quizzes/{quiz['id']}/submit", headers=auth_headers(learner), json={"answers": ["4"]})
    assert_error(r, 403, "You are not eligible to access this course")
    assert_error(client.post("/quizzes/9999/submit", headers=auth_headers(learner), json={"answers": []}), 404, "Quiz not found")


def test_question_crud(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    quiz = _create_quiz(client, headers, built, questions=[])

    question = api_call(
        client, "POST", f"/quizzes/{quiz['id']}/questions", headers=headers,
        json={"text": "Capital of France?", "options": ["Paris", "Rome"], "correct_answer": "Paris"}
    ).json()["data"]
    assert question["type"] == "single-choice"

    updated = api_call(
        client, "PUT", f"/quizzes/{quiz['id']}/questions/{question['id']}", headers=headers,
        json={"options": ["Paris", "Rome", "Lyon"], "points": 3}
    ).json()["data"]
    assert updated["points"] == 3
    assert updated["options"] == ["Paris", "Rome", "Lyon"]

    r = client.put(f"/quizzes/{quiz['id']}/questions/{question['id']}", headers=headers, json={"correct_answer": "Berlin"})
    assert_error(r, 400)

    listed = api_call(client, "GET", f"/quizzes/{quiz['id']}/questions", headers=headers).json()["data"]
    assert [q["id"] for q in listed] == [question["id"]]
    api_call(client, "GET", f"/quizzes/{quiz['id']}/questions/{question['id']}", headers=headers)

    api_call(client, "DELETE", f"/quizzes/{quiz['id']}/questions/{question['id']}", headers=headers)
    r = client.get(f"/quizzes/{quiz['id']}/questions/{question['id']}", headers=headers)
    assert_error(r, 404, "Question not found")


def test_deleting_a_section_removes_its_quiz(client: TestClient, db_session: Session, instructor):
    headers = auth_headers(instructor)
    built = build_published_course(client, headers, db_session, lessons=1)
    quiz = _create_quiz(client, headers, built)
    spare = create_section(client, headers, db_session, built["course_id"], "Spare")

    api_call(client, "PUT", f"/courses/delete-section/{built['course_id']}", headers=headers, json={"section_id": built["section_id"]})

    assert_error(client.get(f"/quizzes/{quiz['id']}", headers=headers), 404, "Quiz not found")
    assert api_call(client, "GET", f"/quizzes/section/{spare}", headers=headers).json()["data"] == []
