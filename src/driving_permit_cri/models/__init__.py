"""Value models for permit submissions, DCS exchanges, evidence and identity."""

from .evidence import CheckDetails, Evidence, EvidenceType
from .permit import REQUIRED_FORM_FIELDS, DrivingPermit, IssuingAuthority, PermitSubmission
from .person import Address, BirthDate, Name, NamePart, NamePartType, PersonIdentity
from .verification import (
    ClientError,
    DcsResponse,
    DocumentCheckResult,
    RawResponse,
    ServerError,
    SignedVerificationRequest,
    StatusClass,
    Success,
    TransportFailure,
    TransportMetadata,
    VerificationOutcome,
    is_retryable,
)

__all__ = [
    "Address",
    "BirthDate",
    "CheckDetails",
    "ClientError",
    "DcsResponse",
    "DocumentCheckResult",
    "DrivingPermit",
    "Evidence",
    "EvidenceType",
    "IssuingAuthority",
    "Name",
    "NamePart",
    "NamePartType",
    "PermitSubmission",
    "PersonIdentity",
    "REQUIRED_FORM_FIELDS",
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
