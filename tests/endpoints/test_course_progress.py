from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.helpers.asserts import api_call, assert_error
from tests.helpers.factories import create_course, enroll, lesson_ids


def test_progress_snapshot_for_fresh_enrollment(client: TestClient, auth_headers, learner_id, scenario_course):
    body = api_call(client, "GET", f"/courses/{scenario_course.id}/progress", headers=auth_headers(learner_id))
    data = body["data"]
    assert data["enrollment"]["progress_percentage"] == 0
    assert data["enrollment"]["status"] == "not_started"
    assert data["completed_lesson_ids"] == []


def test_lesson_states_lock_everything_after_the_first(client: TestClient, auth_headers, learner_id, scenario_course):
    body = api_call(client, "GET", f"/courses/{scenario_course.id}/lessons/state", headers=auth_headers(learner_id))
    lessons = body["data"]["lessons"]
    assert [l["content_type"] for l in lessons] == ["video", "quiz", "asset"]
    assert [l["locked"] for l in lessons] == [False, True, True]
    assert body["data"]["next_lesson_id"] == lessons[0]["lesson_id"]


def test_requests_without_a_valid_token_are_rejected(client: TestClient, scenario_course):
    response = client.get(f"/courses/{scenario_course.id}/progress")
    assert response.status_code in (401, 403)

    response = client.get(
        f"/courses/{scenario_course.id}/progress", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401
    assert_error(response.json(), "UNAUTHORIZED")


def test_unenrolled_principal_gets_forbidden(client: TestClient, auth_headers, scenario_course):
    body = api_call(
        client, "GET", f"/courses/{scenario_course.id}/progress", headers=auth_headers(999), expected_status=403
    )
    assert_error(body, "FORBIDDEN")


def test_unknown_course_and_lesson_are_not_found(client: TestClient, auth_headers, learner_id, scenario_course):
    headers = auth_headers(learner_id)
    assert_error(api_call(client, "GET", "/courses/424242/progress", headers=headers, expected_status=404), "NOT_FOUND")
    assert_error(
        api_call(client, "POST", "/lessons/424242/complete", headers=headers, json={}, expected_status=404),
        "NOT_FOUND",
    )


def test_completing_a_locked_lesson_is_forbidden(client: TestClient, auth_headers, learner_id, scenario_course):
    asset_id = lesson_ids(scenario_course)[2]
    body = api_call(
        client, "POST", f"/lessons/{asset_id}/complete", headers=auth_headers(learner_id), json={}, expected_status=403
    )
    assert_error(body, "FORBIDDEN")


def test_start_lesson_marks_it_current(client: TestClient, auth_headers, learner_id, scenario_course):
    headers = auth_headers(learner_id)
    video_id = lesson_ids(scenario_course)[0]
    body = api_call(client, "POST", f"/lessons/{video_id}/start", headers=headers)
    assert body["data"]["status"] == "in_progress"

    snapshot = api_call(client, "GET", f"/courses/{scenario_course.id}/progress", headers=headers)
    assert snapshot["data"]["enrollment"]["current_lesson_id"] == video_id
    assert snapshot["data"]["enrollment"]["status"] == "in_progress"


def test_progress_ping_updates_lesson_only(client: TestClient, auth_headers, learner_id, scenario_course):
    headers = auth_headers(learner_id)
    video_id = lesson_ids(scenario_course)[0]
    body = api_call(
        client, "POST", f"/lessons/{video_id}/progress", headers=headers,
        json={"progress_percentage": 50, "time_spent": 30},
    )
    assert body["data"] == {"success": True, "status": "in_progress"}

    snapshot = api_call(client, "GET", f"/courses/{scenario_course.id}/progress", headers=headers)
    assert snapshot["data"]["enrollment"]["progress_percentage"] == 0


def test_progress_ping_validates_payload(client: TestClient, auth_headers, learner_id, scenario_course):
    video_id = lesson_ids(scenario_course)[0]
    body = api_call(
        client, "POST", f"/lessons/{video_id}/progress", headers=auth_headers(learner_id),
        json={"progress_percentage": 140}, expected_status=422,
    )
    assert_error(body, "VALIDATION_ERROR")
    assert body["error"]["details"]["validation_errors"]


def test_complete_returns_next_lesson(client: TestClient, auth_headers, learner_id, scenario_course):
    video_id, quiz_id, _ = lesson_ids(scenario_course)
    body = api_call(
        client, "POST", f"/lessons/{video_id}/complete", headers=auth_headers(learner_id),
        json={"final_progress": 100, "time_spent": 600},
    )
    data = body["data"]
    assert data["lesson_id"] == video_id
    assert data["lesson_completed"] is True
    assert data["next_lesson_id"] == quiz_id
    assert data["course_completed"] is False
    assert data["enrollment"]["progress_percentage"] == 33


def test_unpublished_course_is_forbidden(client: TestClient, auth_headers, learner_id, db_session: Session):
    course = create_course(db_session, modules=[[{"content_type": "text"}]], is_published=False)
    enroll(db_session, user_id=learner_id, course=course)
    body = api_call(client, "GET", f"/courses/{course.id}/progress", headers=auth_headers(learner_id), expected_status=403)
    assert_error(body, "FORBIDDEN")


def test_request_id_is_echoed_in_header_and_error_body(client: TestClient, auth_headers, scenario_course):
    headers = {**auth_headers(999), "X-Request-ID": "req-abc-123"}
    response = client.get(f"/courses/{scenario_course.id}/progress", headers=headers)
    assert response.status_code == 403
    assert response.headers["X-Request-ID"] == "req-abc-123"
    body = response.json()
    assert body["request_id"] == "req-abc-123"
    assert body["status"] == 403


def test_video_complete_without_final_progress_does_not_complete(client: TestClient, auth_headers, learner_id, scenario_course):
    headers = auth_headers(learner_id)
    video_id = lesson_ids(scenario_course)[0]
    body = api_call(client, "POST", f"/lessons/{video_id}/complete", headers=headers, json={})
    assert body["data"]["lesson_completed"] is False
    assert body["data"]["enrollment"]["progress_percentage"] == 0

    states = api_call(client, "GET", f"/courses/{scenario_course.id}/lessons/state", headers=headers)["data"]
    assert [s["locked"] for s in states["lessons"]] == [False, True, True]


def test_progress_ping_accepts_fractional_percentage(client: TestClient, auth_headers, learner_id, scenario_course):
    headers = auth_headers(learner_id)
    video_id = lesson_ids(scenario_course)[0]
    body = api_call(
        client, "POST", f"/lessons/{video_id}/progress", headers=headers,
        json={"progress_percentage": 33.4, "time_spent": 5},
    )
    assert body["data"]["success"] is True

    states = api_call(client, "GET", f"/courses/{scenario_course.id}/lessons/state", headers=headers)["data"]
    assert states["lessons"][0]["progress_percentage"] == 33
