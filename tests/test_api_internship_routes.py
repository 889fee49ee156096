"""
tests/test_api_internship_routes.py -- Integration tests for directions, streams
and technical task routes.

Coverage:
  - Role gates: admin-only POST /directions, admin/mentor review, 403 for plain users
  - Verified-email gate on technical task submission
  - Submission and review flags flowing into the login "task" block
"""

from __future__ import annotations

from auth.models import ERole
from conftest import ApiContext, create_session_user
from internship.models import InternshipStream

SUBMISSION = {
    "livePageLink": "https://intern.example.com",
    "repositoryLink": "https://github.com/intern/task",
    "difficulty": "Medium",
    "comments": "Done in a weekend",
}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestDirections:
    def test_admin_adds_direction(self, api_client: ApiContext) -> None:
        resp = api_client.client.post(
            "/api/v1/directions", json={"direction": "  FullStack  "}, headers=api_client.admin_headers
        )
        assert resp.status_code == 201
        assert resp.json()["direction"] == "FullStack"

        listed = api_client.client.get("/api/v1/directions").json()
        assert "FullStack" in [d["direction"] for d in listed]

    def test_duplicate_direction_is_409(self, api_client: ApiContext) -> None:
        api_client.client.post("/api/v1/directions", json={"direction": "Design"}, headers=api_client.admin_headers)
        resp = api_client.client.post(
            "/api/v1/directions", json={"direction": "Design"}, headers=api_client.admin_headers
        )
        assert resp.status_code == 409

    def test_plain_user_is_403(self, api_client: ApiContext) -> None:
        _, token = create_session_user(api_client.stores.users, "dir-user@example.com", "Secret123")
        resp = api_client.client.post("/api/v1/directions", json={"direction": "QA"}, headers=_bearer(token))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "forbidden"

    def test_anonymous_is_401(self, api_client: ApiContext) -> None:
        assert api_client.client.post("/api/v1/directions", json={"direction": "QA"}).status_code == 401


class TestStreams:
    def test_list_streams(self, api_client: ApiContext) -> None:
        internship = api_client.stores.internship
        internship.create_stream(InternshipStream("Backend", "2026-03-01", is_active=False))
        internship.create_stream(InternshipStream("Frontend", "2026-09-01"))

        everything = api_client.client.get("/api/v1/streams").json()
        active = api_client.client.get("/api/v1/streams", params={"active_only": "true"}).json()

        assert {"Backend", "Frontend"} <= {s["streamDirection"] for s in everything}
        assert "Backend" not in {s["streamDirection"] for s in active}
        assert all(s["isActive"] for s in active)


class TestTechnicalTests:
    def test_submit_and_read_back(self, api_client: ApiContext) -> None:
        user, token = create_session_user(api_client.stores.users, "task1@example.com", "Secret123")
        resp = api_client.client.post("/api/v1/technical-tests", json=SUBMISSION, headers=_bearer(token))
        assert resp.status_code == 201, resp.text
        assert resp.json()["userId"] == user.id
        assert resp.json()["difficulty"] == "Medium"

        mine = api_client.client.get("/api/v1/technical-tests/me", headers=_bearer(token))
        assert mine.status_code == 200
        assert mine.json()["repositoryLink"] == SUBMISSION["repositoryLink"]
        assert api_client.stores.users.get_by_id(user.id).is_sent_technical_task is True

    def test_unverified_user_cannot_submit(self, api_client: ApiContext) -> None:
        _, token = create_session_user(api_client.stores.users, "task2@example.com", "Secret123", verified=False)
        resp = api_client.client.post("/api/v1/technical-tests", json=SUBMISSION, headers=_bearer(token))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "email_not_verified"

    def test_bad_link_is_422(self, api_client: ApiContext) -> None:
        _, token = create_session_user(api_client.stores.users, "task3@example.com", "Secret123")
        body = {**SUBMISSION, "livePageLink": "javascript:alert(1)"}
        assert api_client.client.post("/api/v1/technical-tests", json=body, headers=_bearer(token)).status_code == 422

    def test_nothing_submitted_is_404(self, api_client: ApiContext) -> None:
        _, token = create_session_user(api_client.stores.users, "task4@example.com", "Secret123")
        assert api_client.client.get("/api/v1/technical-tests/me", headers=_bearer(token)).status_code == 404

    def test_mentor_review_sets_task_flags(self, api_client: ApiContext) -> None:
        users = api_client.stores.users
        user, token = create_session_user(users, "task5@example.com", "Secret123")
        _, mentor_token = create_session_user(
            users, "mentor@example.com", "Secret123", roles=[ERole.USER.value, ERole.MENTOR.value]
        )
        api_client.client.post("/api/v1/technical-tests", json=SUBMISSION, headers=_bearer(token))

        resp = api_client.client.patch(
            f"/api/v1/technical-tests/{user.id}/review", json={"isPassed": True}, headers=_bearer(mentor_token)
        )
        assert resp.status_code == 200

        login = api_client.client.post(
            "/api/v1/auth/login", json={"email": "task5@example.com", "password": "Secret123"}
        ).json()
        assert login["user"]["task"] == {"isSent": True, "isSuccess": True}

    def test_plain_user_cannot_review(self, api_client: ApiContext) -> None:
        user, token = create_session_user(api_client.stores.users, "task6@example.com", "Secret123")
        resp = api_client.client.patch(
            f"/api/v1/technical-tests/{user.id}/review", json={"isPassed": True}, headers=_bearer(token)
        )
        assert resp.status_code == 403

    def test_review_without_submission_is_404(self, api_client: ApiContext) -> None:
        resp = api_client.client.patch(
            "/api/v1/technical-tests/9999/review", json={"isPassed": False}, headers=api_client.admin_headers
        )
        assert resp.status_code == 404
