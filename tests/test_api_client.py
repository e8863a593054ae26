import pytest
import requests

from vms.errors import AccessDenied, ApiError, SessionExpired
from vms.services.api_client import TrainingAPI

from conftest import FakeSession, make_response, module_payload


def test_envelope_is_unwrapped_and_token_sent(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings", make_response(200, {"success": True, "data": [module_payload("t1", "A")]}))

    data = api.get_all_trainings()

    assert data[0]["_id"] == "t1"
    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer test-token"
    assert call["timeout"] == 5


def test_bare_payload_is_returned_as_is(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings/t1", make_response(200, module_payload("t1", "A")))
    assert api.get_training_by_id("t1")["title"] == "A"


def test_no_authorization_header_without_token(session: FakeSession) -> None:
    api = TrainingAPI(base_url=session.base_url, token="", session=session)
    session.add("GET", "/trainings", make_response(200, []))
    api.get_all_trainings()
    assert "Authorization" not in session.calls[0]["headers"]


def test_unauthorized_raises_session_expired_and_calls_back(session: FakeSession) -> None:
    expired = []
    api = TrainingAPI(
        base_url=session.base_url,
        token="old",
        session=session,
        on_session_expired=lambda: expired.append(True),
    )
    session.add("GET", "/trainings", make_response(401, {"message": "jwt expired"}))

    with pytest.raises(SessionExpired) as exc_info:
        api.get_all_trainings()

    assert exc_info.value.status_code == 401
    assert expired == [True]
    assert api.token is None


def test_forbidden_raises_access_denied(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings", make_response(403, {"message": "nope"}))
    with pytest.raises(AccessDenied):
        api.get_all_trainings()


def test_error_status_uses_backend_message(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings", make_response(500, {"success": False, "message": "database down"}))
    with pytest.raises(ApiError, match="database down") as exc_info:
        api.get_all_trainings()
    assert exc_info.value.status_code == 500


def test_unsuccessful_envelope_raises(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings", make_response(200, {"success": False, "data": None, "message": "bad"}))
    with pytest.raises(ApiError, match="bad"):
        api.get_all_trainings()


def test_network_error_is_wrapped(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings", requests.ConnectionError("refused"))
    with pytest.raises(ApiError, match="refused"):
        api.get_all_trainings()


def test_invalid_json_is_an_api_error(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/trainings", make_response(200, raw=b"<html>oops</html>"))
    with pytest.raises(ApiError):
        api.get_all_trainings()


def test_mark_training_completed_body(api: TrainingAPI, session: FakeSession) -> None:
    session.add("POST", "/training-progress/c-42/complete", make_response(200, {"success": True, "data": {}}))

    api.mark_training_completed("c-42", "t1", "Site Safety", 75)
    api.mark_training_completed("c-42", "t2", "Reading only")

    bodies = [call["json"] for call in session.calls_to("POST", "/training-progress/c-42/complete")]
    assert bodies == [
        {"trainingId": "t1", "title": "Site Safety", "score": 75},
        {"trainingId": "t2", "title": "Reading only"},
    ]


def test_get_completed_trainings_parses_records(api: TrainingAPI, session: FakeSession) -> None:
    session.add(
        "GET",
        "/training-progress/c-42",
        make_response(200, {"success": True, "data": [{"trainingId": "t1", "title": "Site Safety", "score": 90}]}),
    )
    records = api.get_completed_trainings("c-42")
    assert [(record.training_id, record.score) for record in records] == [("t1", 90)]


def test_get_completed_trainings_rejects_non_list(api: TrainingAPI, session: FakeSession) -> None:
    session.add("GET", "/training-progress/c-42", make_response(200, {"unexpected": True}))
    with pytest.raises(ApiError):
        api.get_completed_trainings("c-42")


def test_submit_training(api: TrainingAPI, session: FakeSession) -> None:
    session.add(
        "POST",
        "/training/submit",
        make_response(200, {"success": True, "data": {"score": 88, "passed": True}}),
    )
    response = api.submit_training("c-42", 88)
    assert response is not None and response.passed is True
    assert session.calls[0]["json"] == {"contractorId": "c-42", "score": 88}


def test_submit_training_without_result_body(api: TrainingAPI, session: FakeSession) -> None:
    session.add("POST", "/training/submit", make_response(204))
    assert api.submit_training("c-42", 50) is None


def test_enrollment_and_certificate(api: TrainingAPI, session: FakeSession) -> None:
    enrollment = {"_id": "e1", "visitorId": "c-42", "trainingId": "t1", "status": "Completed", "passed": True}
    session.add("POST", "/training/enrollments", make_response(201, {"success": True, "data": enrollment}))
    session.add("GET", "/training/enrollments/visitor/c-42", make_response(200, [enrollment]))
    session.add(
        "GET",
        "/training/certificates/e1",
        make_response(
            200,
            {
                "certificateId": "cert-9",
                "visitorName": "Jane Roe",
                "trainingTitle": "Site Safety",
                "trainingType": "safety",
                "score": 100,
                "completionDate": "2024-05-01",
                "issueDate": "2024-05-01",
            },
        ),
    )

    assert api.enroll_visitor("c-42", "t1").id == "e1"
    assert session.calls[0]["json"] == {"visitorId": "c-42", "trainingId": "t1"}
    assert [item.status for item in api.get_training_status("c-42")] == ["Completed"]
    assert api.generate_certificate("e1").certificate_id == "cert-9"
