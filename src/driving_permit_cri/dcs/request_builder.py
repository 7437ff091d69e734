"""Builds signed and encrypted document check requests for the DCS."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from driving_permit_cri.config import DcsConfig
from driving_permit_cri.dcs.jose import DcsJoseFraming, JoseFramingError
from driving_permit_cri.exceptions import PayloadConstructionError
from driving_permit_cri.models import PermitSubmission, SignedVerificationRequest, TransportMetadata

logger = logging.getLogger(__name__)

JOSE_CONTENT_TYPE = "application/jose"

_MANDATORY_FIELDS = (
    ("licence_number", "licence number"),
    ("surname", "surname"),
    ("forenames", "forenames"),
    ("date_of_birth", "date of birth"),
    ("expiry_date", "expiry date"),
    ("licence_issuer", "issuing authority"),
)


class DcsPayload(BaseModel):
    """Plain JSON body of a driving permit check before JOSE framing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    request_id: str = Field(alias="requestId")
    correlation_id: str = Field(alias="correlationId")
    surname: str
    forenames: tuple[str, ...]
    date_of_birth: date = Field(alias="dateOfBirth")
    expiry_date: date = Field(alias="expiryDate")
    issue_date: date | None = Field(default=None, alias="issueDate")
    issue_number: str | None = Field(default=None, alias="issueNumber")
    issued_by: str = Field(alias="issuedBy")
    licence_number: str = Field(alias="licenceNumber")
    postcode: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class VerificationRequestBuilder:
    """Turns a permit submission into a framed request and transport metadata."""

    def __init__(
        self,
        framing: DcsJoseFraming,
        config: DcsConfig,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._framing = framing
        self._config = config
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def build(
        self, submission: PermitSubmission, correlation_id: str | None = None
    ) -> SignedVerificationRequest:
        missing = [label for name, label in _MANDATORY_FIELDS if not getattr(submission, name)]
        if missing:
            msg = f"Submission is missing mandatory fields: {', '.join(missing)}"
            raise PayloadConstructionError(msg)

        request_id = self._id_factory()
        payload = DcsPayload(
            request_id=request_id,
            correlation_id=correlation_id or request_id,
            surname=submission.surname,
            forenames=submission.forenames,
            date_of_birth=submission.date_of_birth,
            expiry_date=submission.expiry_date,
            issue_date=submission.issue_date,
            issue_number=submission.issue_number,
            issued_by=submission.licence_issuer.value,
            licence_number=submission.licence_number,
            postcode=submission.postcode,
        )

        try:
            framed = self._framing.wrap(payload.to_json())
        except JoseFramingError as exc:
            raise PayloadConstructionError(str(exc)) from exc

        logger.debug("Prepared DCS request %s", request_id)
        return SignedVerificationRequest(
            request_id=request_id,
            payload=framed,
            metadata=TransportMetadata(
                endpoint=self._config.endpoint_url,
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": JOSE_CONTENT_TYPE},
            ),
        )


__all__ = ["DcsPayload", "JOSE_CONTENT_TYPE", "VerificationRequestBuilder"]
