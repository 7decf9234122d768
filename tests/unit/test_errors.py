import pytest

from ticketdesk.security.errors import (
    AuthError,
    InvalidTransitionError,
    NetworkError,
    NotFoundError,
    RequestRejectedError,
    ServerError,
    TicketValidationError,
    error_for_status,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "status_code,error_type,code",
    [
        (401, AuthError, "E005"),
        (403, AuthError, "E006"),
        (404, NotFoundError, "E007"),
        (409, RequestRejectedError, "E004"),
        (500, ServerError, "E010"),
        (502, ServerError, "E010"),
        (504, NetworkError, "E011"),
    ],
)
def test_error_for_status(status_code, error_type, code):
    error = error_for_status(status_code, internal_message="boom")

    assert type(error) is error_type
    assert error.code == code
    assert error.status_code == status_code


@pytest.mark.unit
def test_notification_payload_hides_internal_details():
    error = NotFoundError(internal_message="GET /support/tickets/T1 -> 404", context={"ticket_id": "T1"})

    payload = error.to_notification()

    assert payload == {"code": "E007", "message": error.message, "trace_id": error.trace_id}
    assert "T1" not in payload["message"]


@pytest.mark.unit
def test_invalid_transition_is_a_validation_error():
    error = InvalidTransitionError()

    assert isinstance(error, TicketValidationError)
    assert error.code == "E014"
    assert error.status_code == 409
