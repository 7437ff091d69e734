"""Value types exchanged across one document check with the DCS."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from driving_permit_cri.models.permit import DrivingPermit


class StatusClass(str, Enum):
    """Classification of a non-successful DCS exchange."""

    REDIRECTION = "redirection"
    CLIENT = "client"
    SERVER = "server"
    UNHANDLED = "unhandled"
    INTEGRITY = "integrity"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class TransportMetadata:
    endpoint: str
    timeout: float
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SignedVerificationRequest:
    """Opaque JOSE payload ready for submission plus its transport metadata."""

    request_id: str
    payload: str
    metadata: TransportMetadata


@dataclass(frozen=True, slots=True)
class RawResponse:
    """What came back from one exchange: a status and body, or an exception."""

    status_code: int | None = None
    body: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    exception: BaseException | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> RawResponse:
        return cls(exception=exc)


class DcsResponse(BaseModel):
    """Decoded body of a DCS document check response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    correlation_id: str | None = Field(default=None, alias="correlationId")
    request_id: str | None = Field(default=None, alias="requestId")
    error: bool = False
    error_message: tuple[str, ...] = Field(default=(), alias="errorMessage")
    valid_document: bool = Field(default=False, alias="validDocument")


@dataclass(frozen=True, slots=True)
class Success:
    match_result: bool
    details: DcsResponse
    status_code: int = 200
    attempt_count: int = 0


@dataclass(frozen=True, slots=True)
class ClientError:
    status_class: StatusClass
    message: str
    status_code: int | None = None
    attempt_count: int = 0


@dataclass(frozen=True, slots=True)
class ServerError:
    message: str
    status_code: int | None = None
    status_class: StatusClass = StatusClass.SERVER
    attempt_count: int = 0


@dataclass(frozen=True, slots=True)
class TransportFailure:
    cause: str
    exception_type: str | None = None
    attempt_count: int = 0


VerificationOutcome = Union[Success, ClientError, ServerError, TransportFailure]


def is_retryable(outcome: VerificationOutcome) -> bool:
    return isinstance(outcome, (ServerError, TransportFailure))


@dataclass(frozen=True, slots=True)
class DocumentCheckResult:
    """Terminal result of a successful document check.

    Carries the scored view of the DCS match that evidence is computed from.
    """

    transaction_id: str | None
    valid_document: bool
    attempt_count: int
    driving_permit: DrivingPermit
    strength_score: int | None = None
    validity_score: int | None = None
    activity_history_score: int | None = None
    check_method: str | None = None
    identity_check_policy: str | None = None
    activity_from: str | None = None
    contra_indicators: tuple[str, ...] = ()


__all__ = [
    "ClientError",
    "DcsResponse",
    "DocumentCheckResult",
    "RawResponse",
    "ServerError",
    "SignedVerificationRequest",
    "StatusClass",
    "Success",
    "TransportFailure",
    "TransportMetadata",
    "VerificationOutcome",
    "is_retryable",
]
