"""Tests for the QuizApiClient module."""
import io
import json
import urllib.error

import pytest
from unittest.mock import MagicMock, patch
from quiz_session.api_client import ApiError, QuizApiClient
from quiz_session.auth import UserContext


def fake_response(payload):
    resp = MagicMock()
    body = json.dumps(payload).encode("utf-8") if payload is not None else b""
    resp.__enter__.return_value.read.return_value = body
    return resp


def http_error(status, payload=None):
    body = json.dumps(payload).encode("utf-8") if payload is not None else b""
    return urllib.error.HTTPError("http://test/api", status, "error", {}, io.BytesIO(body))


@pytest.fixture
def client():
    user = UserContext(user_id="u1", token="secret")
    return QuizApiClient(base_url="http://quiz.test/", user_context=user)


def test_url_gets_api_prefix(client):
    assert client._url("/quiz/submit") == "http://quiz.test/api/quiz/submit"
    assert client._url("quiz/submit") == "http://quiz.test/api/quiz/submit"
    assert client._url("/api/quiz/submit") == "http://quiz.test/api/quiz/submit"


def test_request_sends_bearer_token(client):
    with patch("urllib.request.urlopen", return_value=fake_response({"ok": True})) as urlopen:
        assert client.request("GET", "/quiz/check-qualification") == {"ok": True}
    req = urlopen.call_args[0][0]
    assert req.get_header("Authorization") == "Bearer secret"
    assert req.get_method() == "GET"


def test_no_token_no_auth_header():
    client = QuizApiClient(base_url="http://quiz.test", user_context=UserContext("u1"))
    with patch("urllib.request.urlopen", return_value=fake_response({})) as urlopen:
        client.request("GET", "/quiz/check-qualification")
    assert urlopen.call_args[0][0].get_header("Authorization") is None


def test_submit_posts_score_and_answers(client):
    answers = [{"questionId": "q1", "answer": "A"}]
    with patch("urllib.request.urlopen", return_value=fake_response({"success": True})) as urlopen:
        client.submit(3, answers)
    req = urlopen.call_args[0][0]
    assert req.full_url == "http://quiz.test/api/quiz/submit"
    assert req.get_method() == "POST"
    assert json.loads(req.data.decode("utf-8")) == {"score": 3, "answers": answers}


def test_start_qualification_normalizes_questions(client):
    payload = {
        "attemptId": "att-1",
        "questions": [
            {"id": 1, "question": "Q?", "options": ["A", "B"], "correctAnswer": "A"},
            {"id": 2, "question_text": "Q2?", "options": ["C"], "correct_answer": "C",
             "timeLimit": 15},
        ],
    }
    with patch("urllib.request.urlopen", return_value=fake_response(payload)):
        questions, attempt_id = client.start_qualification()
    assert attempt_id == "att-1"
    assert [q.id for q in questions] == ["1", "2"]
    assert questions[0].time_limit_seconds == 30
    assert questions[1].time_limit_seconds == 15


def test_start_qualification_without_questions(client):
    with patch("urllib.request.urlopen", return_value=fake_response({"message": "none"})):
        questions, attempt_id = client.start_qualification()
    assert questions == []
    assert attempt_id is None


def test_start_qualification_empty_body(client):
    with patch("urllib.request.urlopen", return_value=fake_response(None)):
        with pytest.raises(ApiError):
            client.start_qualification()


def test_check_qualification(client):
    payload = {"needsQualification": True, "hasPassed": False}
    with patch("urllib.request.urlopen", return_value=fake_response(payload)):
        assert client.check_qualification() == payload


def test_error_message_from_body(client):
    with patch("urllib.request.urlopen", side_effect=http_error(400, {"error": "Already submitted"})):
        with pytest.raises(ApiError) as exc:
            client.submit(1)
    assert exc.value.message == "Already submitted"
    assert exc.value.status == 400


def test_error_message_from_nested_data(client):
    err = http_error(422, {"data": {"message": "Bad answers"}})
    with patch("urllib.request.urlopen", side_effect=err):
        with pytest.raises(ApiError) as exc:
            client.submit(1)
    assert exc.value.message == "Bad answers"


@pytest.mark.parametrize("status,code", [
    (401, "UNAUTHENTICATED"),
    (403, "FORBIDDEN"),
    (404, "NOT_FOUND"),
    (500, "SERVER_ERROR"),
    (502, "HTTP_ERROR"),
])
def test_error_code_from_status(client, status, code):
    with patch("urllib.request.urlopen", side_effect=http_error(status)):
        with pytest.raises(ApiError) as exc:
            client.submit(1)
    assert exc.value.code == code
    assert exc.value.status == status


def test_network_error(client):
    with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")):
        with pytest.raises(ApiError) as exc:
            client.submit(1)
    assert exc.value.code == "NETWORK_ERROR"


def test_malformed_response(client):
    resp = MagicMock()
    resp.__enter__.return_value.read.return_value = b"<html>"
    with patch("urllib.request.urlopen", return_value=resp):
        with pytest.raises(ApiError) as exc:
            client.check_qualification()
    assert exc.value.code == "BAD_RESPONSE"
