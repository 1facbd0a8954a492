"""API Client: talks to the quiz backend over HTTPS JSON."""

import json
import logging
import urllib.error
import urllib.request
from typing import Optional, List, Tuple

from quiz_session.auth import UserContext
from quiz_session.models import Question, DEFAULT_TIME_LIMIT
from quiz_session.normalizer import normalize_questions

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_TIMEOUT = 15

STATUS_ERRORS = {
    401: ("Please login again", "UNAUTHENTICATED"),
    403: ("You don't have permission for this action", "FORBIDDEN"),
    404: ("Requested resource not found", "NOT_FOUND"),
    500: ("Server error - please try again later", "SERVER_ERROR"),
}


class ApiError(Exception):
    """A failed backend call, normalized to a message, HTTP status and code."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def to_dict(self) -> dict:
        return {"message": self.message, "status": self.status, "code": self.code}


def _error_from_body(body: bytes, status: int) -> ApiError:
    data = None
    try:
        data = json.loads(body.decode("utf-8")) if body else None
    except (UnicodeDecodeError, ValueError):
        pass
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        data = data["data"]
    if isinstance(data, dict):
        if data.get("error"):
            return ApiError(str(data["error"]), status=status)
        if data.get("message"):
            return ApiError(str(data["message"]), status=status)
    if status in STATUS_ERRORS:
        message, code = STATUS_ERRORS[status]
        return ApiError(message, status=status, code=code)
    return ApiError(f"Request failed with status {status}", status=status, code="HTTP_ERROR")


class QuizApiClient:
    """Question source and submit-results collaborator backed by the REST API."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, user_context: Optional[UserContext] = None,
                 timeout: float = DEFAULT_TIMEOUT, default_time_limit: int = DEFAULT_TIME_LIMIT):
        self.base_url = base_url.rstrip("/")
        self.user_context = user_context or UserContext.anonymous()
        self.timeout = timeout
        self.default_time_limit = default_time_limit

    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        if not path.startswith("/"):
            path = "/" + path
        if not path.startswith("/api/"):
            path = "/api" + path
        return self.base_url + path

    def request(self, method: str, path: str, payload: Optional[dict] = None):
        """Send a JSON request and return the decoded response body."""
        url = self._url(path)
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        headers.update(self.user_context.auth_headers())
        data = json.dumps(payload).encode("utf-8") if payload is not None else None

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug(f"{method} {url}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            error = _error_from_body(e.read(), e.code)
            logger.error(f"{method} {url} failed: {error.message} ({error.status})")
            raise error from e
        except (urllib.error.URLError, OSError) as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ApiError("Network error - please check your connection",
                           code="NETWORK_ERROR") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise ApiError("Malformed response from server", code="BAD_RESPONSE") from e

    def start_qualification(self) -> Tuple[List[Question], Optional[str]]:
        """Start a qualification attempt; returns (questions, attempt id)."""
        data = self.request("POST", "/quiz/start-qualification")
        if not isinstance(data, dict):
            raise ApiError("No data received from server", code="BAD_RESPONSE")
        if "questions" not in data:
            logger.warning("No questions in response")
        questions = normalize_questions(data.get("questions", []), self.default_time_limit)
        logger.info(f"Qualification attempt started with {len(questions)} questions")
        return questions, data.get("attemptId")

    def check_qualification(self) -> dict:
        """Fetch the caller's qualification status."""
        data = self.request("GET", "/quiz/check-qualification")
        return data if isinstance(data, dict) else {}

    def submit(self, score: int, answers: Optional[List[dict]] = None):
        """Report a final score and answers for the current user."""
        payload = {"score": score, "answers": answers or []}
        result = self.request("POST", "/quiz/submit", payload)
        logger.info(f"Submitted score {score}")
        return result
