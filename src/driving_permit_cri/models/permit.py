"""Permit holder submission and driving permit attribute models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from driving_permit_cri.exceptions import FormDataParseError
from driving_permit_cri.models.person import Address

REQUIRED_FORM_FIELDS: tuple[str, ...] = (
    "surname",
    "forenames",
    "dateOfBirth",
    "expiryDate",
    "licenceIssuer",
    "drivingLicenceNumber",
    "postcode",
)


class IssuingAuthority(str, Enum):
    """Licensing agencies whose permits the DCS can check."""

    DVLA = "DVLA"
    DVA = "DVA"


class PermitSubmission(BaseModel):
    """Holder-declared driving permit attributes.

    Fields are optional at the model level; the intake form parser enforces the
    required set and the request builder re-checks it before any payload leaves
    the service.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    licence_number: str | None = Field(default=None, alias="drivingLicenceNumber")
    surname: str | None = None
    forenames: tuple[str, ...] = ()
    postcode: str | None = None
    date_of_birth: date | None = Field(default=None, alias="dateOfBirth")
    issue_date: date | None = Field(default=None, alias="issueDate")
    expiry_date: date | None = Field(default=None, alias="expiryDate")
    issue_number: str | None = Field(default=None, alias="issueNumber")
    licence_issuer: IssuingAuthority | None = Field(default=None, alias="licenceIssuer")

    @field_validator("forenames", mode="before")
    @classmethod
    def _single_forename_as_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        return value

    @property
    def addresses(self) -> tuple[Address, ...]:
        if not self.postcode:
            return ()
        return (Address(postal_code=self.postcode),)

    @classmethod
    def parse_form(cls, body: str | bytes) -> PermitSubmission:
        """Parse the intake form JSON body, enforcing the required fields."""
        try:
            submission = cls.model_validate_json(body)
        except ValidationError as exc:
            msg = f"Invalid driving permit form: {exc.error_count()} validation error(s)"
            raise FormDataParseError(msg) from exc

        missing = [name for name in REQUIRED_FORM_FIELDS if not submission._has_value(name)]
        if missing:
            msg = f"Missing required form fields: {', '.join(missing)}"
            raise FormDataParseError(msg)
        return submission

    def _has_value(self, alias: str) -> bool:
        for name, field in type(self).model_fields.items():
            if (field.alias or name) == alias:
                value = getattr(self, name)
                if isinstance(value, str):
                    return bool(value.strip())
                return bool(value)
        return False


class DrivingPermit(BaseModel):
    """Driving permit attributes published in the credential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    document_number: str = Field(alias="documentNumber")
    expiry_date: date | None = Field(default=None, alias="expiryDate")
    issued_by: str | None = Field(default=None, alias="issuedBy")

    @classmethod
    def from_submission(cls, submission: PermitSubmission) -> DrivingPermit:
        return cls(
            document_number=submission.licence_number or "",
            expiry_date=submission.expiry_date,
            issued_by=submission.licence_issuer.value if submission.licence_issuer else None,
        )

    def to_claim(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "DrivingPermit",
    "IssuingAuthority",
    "PermitSubmission",
    "REQUIRED_FORM_FIELDS",
]
