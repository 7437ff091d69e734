import httpx
import pytest

from driving_permit_cri.dcs import VerificationResponseInterpreter
from driving_permit_cri.exceptions import VerificationTransportError
from driving_permit_cri.models import (
    ClientError,
    RawResponse,
    ServerError,
    StatusClass,
    Success,
    TransportFailure,
)


@pytest.fixture
def interpreter(framing):
    return VerificationResponseInterpreter(framing)


def test_signed_match_is_success(interpreter, dcs_stub):
    raw = RawResponse(status_code=200, body=dcs_stub.response_body("txn-1", valid_document=True))

    outcome = interpreter.interpret(raw)

    assert isinstance(outcome, Success)
    assert outcome.match_result is True
    assert outcome.details.request_id == "txn-1"
    assert outcome.attempt_count == 0


def test_signed_non_match_is_success_without_match(interpreter, dcs_stub):
    raw = RawResponse(status_code=200, body=dcs_stub.response_body("txn-2", valid_document=False))

    outcome = interpreter.interpret(raw)

    assert isinstance(outcome, Success)
    assert outcome.match_result is False


def test_dcs_error_body_is_rejected(interpreter, dcs_stub):
    body = dcs_stub.response_body("txn-3", error=True, error_message=("Licence number invalid",))

    outcome = interpreter.interpret(RawResponse(status_code=200, body=body))

    assert outcome == ClientError(StatusClass.REJECTED, "Licence number invalid", status_code=200)


def test_unverifiable_body_is_integrity_failure(interpreter):
    outcome = interpreter.interpret(RawResponse(status_code=200, body="eyJ.bad.token"))

    assert isinstance(outcome, ClientError)
    assert outcome.status_class is StatusClass.INTEGRITY


def test_empty_success_body_is_integrity_failure(interpreter):
    outcome = interpreter.interpret(RawResponse(status_code=200, body=""))

    assert isinstance(outcome, ClientError)
    assert outcome.status_class is StatusClass.INTEGRITY


def test_unparseable_inner_payload_is_integrity_failure(interpreter, dcs_stub):
    body = dcs_stub.framing.wrap(b"[1, 2, 3]")

    outcome = interpreter.interpret(RawResponse(status_code=200, body=body))

    assert isinstance(outcome, ClientError)
    assert outcome.status_class is StatusClass.INTEGRITY


@pytest.mark.parametrize(
    ("status", "status_class"),
    [
        (301, StatusClass.REDIRECTION),
        (302, StatusClass.REDIRECTION),
        (400, StatusClass.CLIENT),
        (404, StatusClass.CLIENT),
        (101, StatusClass.UNHANDLED),
        (600, StatusClass.UNHANDLED),
    ],
)
def test_non_success_statuses_are_client_errors(interpreter, status, status_class):
    outcome = interpreter.interpret(RawResponse(status_code=status, body="nope"))

    assert isinstance(outcome, ClientError)
    assert outcome.status_class is status_class
    assert outcome.status_code == status


@pytest.mark.parametrize("status", [500, 502, 503, 504])
def test_server_statuses_are_server_errors(interpreter, status):
    outcome = interpreter.interpret(RawResponse(status_code=status))

    assert isinstance(outcome, ServerError)
    assert outcome.status_class is StatusClass.SERVER
    assert outcome.status_code == status


def test_missing_status_is_unhandled(interpreter):
    outcome = interpreter.interpret(RawResponse())

    assert isinstance(outcome, ClientError)
    assert outcome.status_class is StatusClass.UNHANDLED


@pytest.mark.parametrize(
    "exc",
    [
        TimeoutError(),
        ConnectionResetError("connection reset by peer"),
        VerificationTransportError("ConnectError: name resolution failed"),
        httpx.ConnectTimeout("timed out"),
    ],
)
def test_exceptions_are_transport_failures(interpreter, exc):
    outcome = interpreter.interpret(RawResponse.from_exception(exc))

    assert isinstance(outcome, TransportFailure)
    assert outcome.exception_type == type(exc).__name__
    assert outcome.cause
