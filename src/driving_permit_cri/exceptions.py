"""Error catalog and exception hierarchy for the driving permit credential issuer.

Every failure surfaced to callers is a :class:`DrivingPermitError` carrying a
stable :class:`ErrorResponse` entry (numeric code plus message), an
:class:`ErrorCategory` and, where one exists, the upstream status class of the
document checking service exchange.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorResponse(Enum):
    """Fixed catalog of error codes returned to callers."""

    FAILED_TO_PARSE_DRIVING_PERMIT_FORM_DATA = (1000, "Failed to parse Driving Permit form data")
    FAILED_TO_PREPARE_DCS_PAYLOAD = (1003, "Failed to prepare DCS payload")
    ERROR_CONTACTING_DCS = (1004, "Error when contacting DCS for document check")
    FAILED_TO_UNWRAP_DCS_RESPONSE = (1005, "Failed to unwrap Dcs response")
    DCS_RETURNED_AN_ERROR = (1006, "DCS returned an error response")
    FAILED_TO_PARSE = (1008, "Failed to parse")
    FORM_DATA_FAILED_VALIDATION = (1021, "Form Data failed validation")
    DCS_ERROR_HTTP_30X = (1022, "DCS Responded with a HTTP Redirection status code")
    DCS_ERROR_HTTP_40X = (1023, "DCS Responded with a HTTP Client Error status code")
    DCS_ERROR_HTTP_50X = (1024, "DCS Responded with a HTTP Server Error status code")
    DCS_ERROR_HTTP_X = (1025, "DCS Responded with an unhandled HTTP status code")
    TOO_MANY_RETRY_ATTEMPTS = (1026, "Too many retry attempts made")
    FAILED_TO_SIGN_VERIFIABLE_CREDENTIAL = (1027, "Failed to sign verifiable credential")
    FAILED_TO_BUILD_EVIDENCE = (1028, "Failed to build evidence from document check result")

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message

    @classmethod
    def from_code(cls, code: int) -> ErrorResponse:
        for member in cls:
            if member.code == code:
                return member
        msg = f"Unknown error code: {code}"
        raise KeyError(msg)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    INTEGRITY = "integrity"
    REJECTED = "rejected"
    TRANSIENT = "transient"
    EXHAUSTED = "exhausted"
    SIGNING = "signing"
    INTERNAL = "internal"


CATEGORY_TO_HTTP_STATUS: dict[ErrorCategory, HTTPStatus] = {
    ErrorCategory.VALIDATION: HTTPStatus.BAD_REQUEST,
    ErrorCategory.INTEGRITY: HTTPStatus.BAD_GATEWAY,
    ErrorCategory.REJECTED: HTTPStatus.BAD_GATEWAY,
    ErrorCategory.TRANSIENT: HTTPStatus.SERVICE_UNAVAILABLE,
    ErrorCategory.EXHAUSTED: HTTPStatus.SERVICE_UNAVAILABLE,
    ErrorCategory.SIGNING: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCategory.INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class DrivingPermitError(Exception):
    """Base error for the verification and issuance pipeline."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    retryable: bool = False

    def __init__(
        self,
        error_response: ErrorResponse,
        reason: str | None = None,
        *,
        status_class: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        self.error_response = error_response
        self.reason = reason or error_response.message
        self.status_class = status_class
        self.upstream_status = upstream_status
        super().__init__(self.reason)

    @property
    def code(self) -> int:
        return self.error_response.code

    @property
    def status_code(self) -> int:
        return int(CATEGORY_TO_HTTP_STATUS[self.category])

    def to_error_body(self) -> dict[str, Any]:
        body = self.error_response.to_dict()
        body["reason"] = self.reason
        if self.status_class is not None:
            body["statusClass"] = self.status_class
        if self.upstream_status is not None:
            body["upstreamStatus"] = self.upstream_status
        return body


class FormDataParseError(DrivingPermitError):
    """The intake form body could not be parsed into a permit submission."""

    category = ErrorCategory.VALIDATION

    def __init__(self, reason: str) -> None:
        super().__init__(ErrorResponse.FAILED_TO_PARSE_DRIVING_PERMIT_FORM_DATA, reason)


class PayloadConstructionError(DrivingPermitError):
    """The submission is structurally unable to produce a DCS payload."""

    category = ErrorCategory.VALIDATION

    def __init__(self, reason: str) -> None:
        super().__init__(ErrorResponse.FAILED_TO_PREPARE_DCS_PAYLOAD, reason)


class ResponseIntegrityError(DrivingPermitError):
    """The DCS response failed signature verification or decryption."""

    category = ErrorCategory.INTEGRITY

    def __init__(self, reason: str, *, upstream_status: int | None = None) -> None:
        super().__init__(
            ErrorResponse.FAILED_TO_UNWRAP_DCS_RESPONSE,
            reason,
            status_class="integrity",
            upstream_status=upstream_status,
        )


class ClientRejection(DrivingPermitError):
    """The DCS rejected the request or answered with a non-retryable status."""

    category = ErrorCategory.REJECTED


class ServiceUnavailable(DrivingPermitError):
    """A single attempt failed with a 5xx status or a transport failure."""

    category = ErrorCategory.TRANSIENT
    retryable = True


class TooManyRetryAttempts(DrivingPermitError):
    """Every permitted attempt ended in a retryable failure."""

    category = ErrorCategory.EXHAUSTED

    def __init__(self, attempts: int, *, status_class: str | None = None) -> None:
        self.attempts = attempts
        super().__init__(
            ErrorResponse.TOO_MANY_RETRY_ATTEMPTS,
            f"Document check abandoned after {attempts} attempts",
            status_class=status_class,
        )


class SigningFailure(DrivingPermitError):
    """The external signer could not produce a signed credential."""

    category = ErrorCategory.SIGNING

    def __init__(self, reason: str) -> None:
        super().__init__(ErrorResponse.FAILED_TO_SIGN_VERIFIABLE_CREDENTIAL, reason)


class EvidenceConstructionError(DrivingPermitError):
    """The check result lacks a field that evidence requires."""

    category = ErrorCategory.INTERNAL

    def __init__(self, reason: str) -> None:
        super().__init__(ErrorResponse.FAILED_TO_BUILD_EVIDENCE, reason)


class VerificationTransportError(Exception):
    """Connection-level failure raised by a verification transport."""


__all__ = [
    "CATEGORY_TO_HTTP_STATUS",
    "ClientRejection",
    "DrivingPermitError",
    "ErrorCategory",
    "ErrorResponse",
    "EvidenceConstructionError",
    "FormDataParseError",
    "PayloadConstructionError",
    "ResponseIntegrityError",
    "ServiceUnavailable",
    "SigningFailure",
    "TooManyRetryAttempts",
    "VerificationTransportError",
]
