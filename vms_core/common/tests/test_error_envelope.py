import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APIClient, APIRequestFactory

from vms_core.common.api.exceptions import api_exception_handler
from vms_core.lifecycle.errors import InvalidCommand, TransitionRejected

factory = APIRequestFactory()


def _handle(exc, **headers):
    request = factory.get("/api/v1/enquiries/", **headers)
    return api_exception_handler(exc, {"request": request})


def test_transition_rejected_is_conflict_with_rule():
    res = _handle(TransitionRejected("Cannot complete a cancelled enquiry.", code="not_actionable"))

    assert res.status_code == 409
    assert res.data["error"]["code"] == "conflict"
    assert res.data["error"]["message"] == "Cannot complete a cancelled enquiry."
    assert res.data["error"]["details"] == {"rule": "not_actionable"}


def test_invalid_command_is_validation_error():
    res = _handle(InvalidCommand("Staff name is required."))

    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"
    assert res.data["error"]["details"] == {"rule": "invalid_command"}


def test_django_validation_error_message():
    res = _handle(DjangoValidationError("Enquirer name is required."))

    assert res.status_code == 400
    assert res.data["error"]["message"] == "Enquirer name is required."
    assert res.data["error"]["details"] is None


def test_request_id_header_is_echoed():
    res = _handle(NotFound("Enquiry not found."), HTTP_X_REQUEST_ID="req-42")

    assert res.status_code == 404
    assert res.data["error"] == {
        "code": "not_found",
        "message": "Enquiry not found.",
        "details": None,
        "request_id": "req-42",
    }


def test_request_id_generated_when_missing():
    res = _handle(NotFound())
    assert len(res.data["error"]["request_id"]) == 32


def test_unhandled_error_is_500_envelope():
    res = _handle(RuntimeError("boom"))

    assert res.status_code == 500
    assert res.data["error"]["code"] == "server_error"
    assert res.data["error"]["message"] == "Unexpected server error."


def test_field_errors_keep_details():
    res = _handle(ValidationError({"staff_name": ["This field is required."]}))

    assert res.data["error"]["message"] == "Request failed."
    assert res.data["error"]["details"] == {"staff_name": ["This field is required."]}


@pytest.mark.django_db
def test_anonymous_request_is_401():
    res = APIClient().get("/api/v1/enquiries/")

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "not_authenticated"
