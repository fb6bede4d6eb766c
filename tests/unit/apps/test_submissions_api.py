"""
Submission API tests

HTTP surface of the pipeline: status codes, the error envelope, the
Retry-After header and origin capture.
"""

import pytest

from zdctf.core.data.models import SubmissionAttempt
from zdctf.core.error_handlers import get_json_error_response
from zdctf.ctf.matchers import hash_flag

URL = "/api/v1/submissions"
FLAG = "ZD{test_flag}"


@pytest.fixture
def ready(db, make_profile, make_challenge):
    make_profile("user-1", username="alice")
    make_challenge("warmup", flag=FLAG, points=500)
    return db


def _post(client, headers, challenge_id="warmup", flag_input=FLAG, **extra):
    body = {"challenge_id": challenge_id, "flag_input": flag_input, **extra}
    return client.post(URL, json=body, headers=headers)


@pytest.mark.unit
def test_correct_submission(client, ready, auth_headers):
    response = _post(client, auth_headers("user-1"))
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "points_awarded": 500,
        "is_first_blood": True,
        "message": "🩸 FIRST BLOOD! You earned 500 points!",
    }


@pytest.mark.unit
def test_incorrect_submission_is_200(client, ready, auth_headers):
    response = _post(client, auth_headers("user-1"), flag_input="ZD{wrong}")
    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Incorrect flag. Try again."}


@pytest.mark.unit
def test_client_supplied_hash_is_ignored(client, ready, auth_headers):
    """A correct client-side hash cannot stand in for the flag"""
    response = _post(
        client,
        auth_headers("user-1"),
        flag_input="ZD{wrong}",
        flag_hash=hash_flag(FLAG, salt="zd_s3cr3t_s4lt_2024"),
    )
    assert response.status_code == 200
    assert response.json()["success"] is False


@pytest.mark.unit
def test_missing_credentials(client, ready):
    response = client.post(URL, json={"challenge_id": "warmup", "flag_input": FLAG})
    assert response.status_code == 401
    assert response.json() == {
        "error": {"code": 401, "message": "Unauthorized", "type": "unauthorized"}
    }


@pytest.mark.unit
def test_forged_token(client, ready):
    headers = {"Authorization": "Bearer user-1." + "0" * 64}
    assert _post(client, headers).status_code == 401


@pytest.mark.unit
def test_unknown_profile(client, ready, auth_headers):
    assert _post(client, auth_headers("nobody")).status_code == 401


@pytest.mark.unit
def test_empty_flag_is_400(client, ready, auth_headers):
    response = client.post(URL, json={"challenge_id": "warmup"}, headers=auth_headers("user-1"))
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "validation_error"
    assert error["message"] == "Flag is required"


@pytest.mark.unit
def test_malformed_body_is_400(client, ready, auth_headers):
    response = client.post(
        URL,
        content="not json",
        headers={**auth_headers("user-1"), "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["type"] == "validation_error"


@pytest.mark.unit
def test_oversized_flag_is_400(client, ready, auth_headers):
    response = _post(client, auth_headers("user-1"), flag_input="A" * 501)
    assert response.status_code == 400


@pytest.mark.unit
def test_unknown_challenge_is_404(client, ready, auth_headers):
    response = _post(client, auth_headers("user-1"), challenge_id="nope")
    assert response.status_code == 404
    assert response.json()["error"] == {
        "code": 404,
        "message": "Challenge not found",
        "type": "not_found",
    }


@pytest.mark.unit
def test_repeat_solve_is_409(client, ready, auth_headers):
    headers = auth_headers("user-1")
    assert _post(client, headers).status_code == 200
    response = _post(client, headers)
    assert response.status_code == 409
    assert response.json()["error"]["reason"] == "already_solved"


@pytest.mark.unit
def test_paused_is_403_with_reason(client, ready, set_setting, auth_headers):
    set_setting("game_paused", "true")
    response = _post(client, auth_headers("user-1"))
    assert response.status_code == 403
    assert response.json()["error"] == {
        "code": 403,
        "message": "CTF is currently paused",
        "type": "forbidden",
        "reason": "paused",
    }


@pytest.mark.unit
def test_rate_limit_sets_retry_after(client, ready, auth_headers):
    headers = auth_headers("user-1")
    for _ in range(5):
        assert _post(client, headers, flag_input="ZD{wrong}").status_code == 200

    response = _post(client, headers)
    assert response.status_code == 429
    error = response.json()["error"]
    assert error["type"] == "rate_limited"
    assert 1 <= error["retry_after"] <= 60
    assert response.headers["Retry-After"] == str(error["retry_after"])


@pytest.mark.unit
def test_origin_recorded_from_forwarded_header(client, ready, auth_headers):
    headers = {**auth_headers("user-1"), "X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
    _post(client, headers, flag_input="ZD{wrong}")
    ready.expire_all()
    attempt = ready.query(SubmissionAttempt).one()
    assert attempt.ip_address == "203.0.113.7"
    assert attempt.user_id == "user-1"


@pytest.mark.unit
def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.unit
def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == 404


@pytest.mark.unit
@pytest.mark.parametrize(
    "detail,message",
    [
        (None, "Too Many Requests"),
        ("", "Too Many Requests"),
        ("Slow down", "Slow down"),
    ],
)
def test_error_response_falls_back_to_status_text(detail, message):
    assert get_json_error_response(429, detail) == {
        "error": {"code": 429, "message": message, "type": "api_error"}
    }
