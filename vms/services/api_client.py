import logging
import requests
from pydantic import BaseModel, ValidationError
from typing import Any, Callable, List, Optional, Type

from vms.config import settings
from vms.errors import AccessDenied, ApiError, SessionExpired
from vms.models.progress import (
    Certificate,
    CompletionRecord,
    TrainingEnrollment,
    TrainingSubmissionResponse,
)

logger = logging.getLogger(__name__)

TRAININGS_PATH = "/trainings"
PROGRESS_PATH = "/training-progress"
SUBMIT_PATH = "/training/submit"
ENROLLMENTS_PATH = "/training/enrollments"
CERTIFICATES_PATH = "/training/certificates"


def _unwrap(payload: Any) -> Any:
    """Return the `data` member of a `{success, data, message}` envelope, or the payload itself."""
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        if payload["success"] is False:
            raise ApiError(payload.get("message") or "An error occurred")
        return payload["data"]
    return payload


def _parse(model: Type[BaseModel], data: Any):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} payload: {str(e)}")
        raise ApiError(f"Unexpected {model.__name__} payload") from e


def _parse_list(model: Type[BaseModel], data: Any) -> list:
    if not isinstance(data, list):
        raise ApiError(f"Expected a list of {model.__name__}, got {type(data).__name__}")
    return [_parse(model, item) for item in data]


class TrainingAPI:
    """Client for the training endpoints of the VMS backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.API_TOKEN
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.on_session_expired = on_session_expired

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} error: {str(e)}")
            raise ApiError(str(e)) from e

        if response.status_code == 401:
            logger.warning("Received 401 Unauthorized - token may be expired")
            self.token = None
            if self.on_session_expired is not None:
                self.on_session_expired()
            raise SessionExpired("Session expired. Please log in again.", 401)

        if response.status_code == 403:
            raise AccessDenied(
                "Access denied. You do not have permission to perform this action.", 403
            )

        payload = None
        if response.content:
            try:
                payload = response.json()
            except ValueError as e:
                logger.error(f"{method} {path} returned invalid JSON: {str(e)}")
                raise ApiError("Invalid JSON in backend response", response.status_code) from e

        if not response.ok:
            message = payload.get("message") if isinstance(payload, dict) else None
            logger.error(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(message or f"Request failed ({response.status_code})", response.status_code)

        return _unwrap(payload)

    # Catalog

    def get_all_trainings(self) -> Any:
        """Raw training list; validation happens in the catalog accessor."""
        return self._request("GET", TRAININGS_PATH)

    def get_training_by_id(self, training_id: str) -> Any:
        return self._request("GET", f"{TRAININGS_PATH}/{training_id}")

    # Progress

    def mark_training_completed(
        self, contractor_id: str, training_id: str, title: str, score: Optional[int] = None
    ) -> Any:
        body = {"trainingId": training_id, "title": title}
        if score is not None:
            body["score"] = score
        return self._request("POST", f"{PROGRESS_PATH}/{contractor_id}/complete", json=body)

    def get_completed_trainings(self, contractor_id: str) -> List[CompletionRecord]:
        data = self._request("GET", f"{PROGRESS_PATH}/{contractor_id}")
        return _parse_list(CompletionRecord, data or [])

    def submit_training(self, contractor_id: str, score: int) -> Optional[TrainingSubmissionResponse]:
        data = self._request("POST", SUBMIT_PATH, json={"contractorId": contractor_id, "score": score})
        if isinstance(data, dict) and "score" in data and "passed" in data:
            return _parse(TrainingSubmissionResponse, data)
        return None

    # Enrollment and certificates

    def get_training_status(self, visitor_id: str) -> List[TrainingEnrollment]:
        data = self._request("GET", f"{ENROLLMENTS_PATH}/visitor/{visitor_id}")
        return _parse_list(TrainingEnrollment, data or [])

    def enroll_visitor(self, visitor_id: str, training_id: str) -> TrainingEnrollment:
        data = self._request(
            "POST", ENROLLMENTS_PATH, json={"visitorId": visitor_id, "trainingId": training_id}
        )
        return _parse(TrainingEnrollment, data)

    def generate_certificate(self, enrollment_id: str) -> Certificate:
        data = self._request("GET", f"{CERTIFICATES_PATH}/{enrollment_id}")
        return _parse(Certificate, data)
