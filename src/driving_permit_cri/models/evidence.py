"""Evidence published inside the identity check credential."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EvidenceType(str, Enum):
    IDENTITY_CHECK = "IdentityCheck"


class CheckDetails(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    check_method: str | None = Field(default=None, alias="checkMethod")
    identity_check_policy: str | None = Field(default=None, alias="identityCheckPolicy")
    activity_from: str | None = Field(default=None, alias="activityFrom")


class Evidence(BaseModel):
    """Scores and check details derived from one document check.

    Exactly one of ``check_details`` and ``failed_check_details`` is set.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: EvidenceType = EvidenceType.IDENTITY_CHECK
    txn: str
    strength_score: int = Field(alias="strengthScore")
    validity_score: int = Field(alias="validityScore")
    activity_history_score: int = Field(alias="activityHistoryScore")
    check_details: tuple[CheckDetails, ...] | None = Field(default=None, alias="checkDetails")
    failed_check_details: tuple[CheckDetails, ...] | None = Field(
        default=None, alias="failedCheckDetails"
    )
    ci: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _exactly_one_details(self) -> Evidence:
        if (self.check_details is None) == (self.failed_check_details is None):
            msg = "exactly one of checkDetails and failedCheckDetails must be set"
            raise ValueError(msg)
        return self

    def to_claim(self) -> dict[str, Any]:
        claim = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not self.ci:
            claim.pop("ci")
        return claim


__all__ = ["CheckDetails", "Evidence", "EvidenceType"]
