from datetime import timedelta

from fastapi.testclient import TestClient

from app.core.constants import RoleEnum
from app.core.security import create_access_token
from tests.helpers.asserts import api_call, assert_error, auth_headers


def test_health_reports_cache_status(client: TestClient):
    body = api_call(client, "GET", "/health").json()

    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["cache"] == "ok"


def test_missing_token_is_unauthorized(client: TestClient):
    body = assert_error(client.get("/courses/purchased"), 401, "Please login to access this resource")

    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["path"].endswith("/courses/purchased")
    assert body["request_id"]


def test_bad_or_expired_tokens_are_rejected(client: TestClient, learner):
    assert_error(client.get("/courses/purchased", headers={"Authorization": "Bearer not-a-jwt"}), 401, "Invalid token")

    expired = create_access_token(learner.id, expires_delta=timedelta(minutes=-5))
    assert_error(client.get("/courses/purchased", headers={"Authorization": f"Bearer {expired}"}), 401, "Invalid token")

    ghost = create_access_token(987654)
    assert_error(client.get("/courses/purchased", headers={"Authorization": f"Bearer {ghost}"}), 401, "User not found")


def test_inactive_users_are_forbidden(client: TestClient, user_factory):
    dormant = user_factory(is_active=False)
    assert_error(client.get("/courses/purchased", headers=auth_headers(dormant)), 403, "Inactive user")


def test_role_guard_names_the_role(client: TestClient, learner):
    r = client.post("/courses/", headers=auth_headers(learner), json={"name": "Nope"})
    assert_error(r, 403, "Role: user is not allowed to access this resource")


def test_anonymous_preview_with_a_bad_token_still_fails(client: TestClient, user_factory):
    author = user_factory(RoleEnum.INSTRUCTOR)
    course_id = api_call(client, "POST", "/courses/", headers=auth_headers(author), json={"name": "Open"}).json()["data"]["id"]

    assert_error(client.get(f"/courses/{course_id}", headers={"Authorization": "Bearer broken"}), 401, "Invalid token")


def test_validation_errors_use_the_envelope(client: TestClient, user_factory):
    author = user_factory(RoleEnum.INSTRUCTOR)
    r = client.put("/courses/create-section/abc", headers=auth_headers(author), json={"title": "Intro"})

    body = assert_error(r, 422, "Request validation failed")
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["validation_errors"]


def test_unknown_route_is_not_found(client: TestClient):
    body = assert_error(client.get("/nowhere"), 404)
    assert body["error"]["code"] == "NOT_FOUND"


def test_request_id_is_echoed(client: TestClient):
    r = client.get("/health", headers={"X-Request-ID": "trace-123"})

    assert r.headers["X-Request-ID"] == "trace-123"
    assert client.get("/health").headers["X-Request-ID"]
