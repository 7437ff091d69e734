"""Scoring of DCS matches and evidence construction for the credential."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from driving_permit_cri.exceptions import EvidenceConstructionError
from driving_permit_cri.models import (
    CheckDetails,
    DocumentCheckResult,
    DrivingPermit,
    Evidence,
    EvidenceType,
    PermitSubmission,
    Success,
)

logger = logging.getLogger(__name__)

CHECK_METHOD = "data"
IDENTITY_CHECK_POLICY = "published"

VALID_DOCUMENT_STRENGTH_SCORE = 3
VALID_DOCUMENT_VALIDITY_SCORE = 2
VALID_DOCUMENT_ACTIVITY_HISTORY_SCORE = 1

INVALID_DOCUMENT_STRENGTH_SCORE = 3
INVALID_DOCUMENT_VALIDITY_SCORE = 0
INVALID_DOCUMENT_ACTIVITY_HISTORY_SCORE = 0
INVALID_DOCUMENT_CONTRA_INDICATOR = "D02"


def score_document_check(outcome: Success, submission: PermitSubmission) -> DocumentCheckResult:
    """Derive scores and contra-indicators from a successful DCS match."""
    permit = DrivingPermit.from_submission(submission)
    common = {
        "transaction_id": outcome.details.request_id,
        "valid_document": outcome.match_result,
        "attempt_count": outcome.attempt_count,
        "driving_permit": permit,
        "check_method": CHECK_METHOD,
        "identity_check_policy": IDENTITY_CHECK_POLICY,
    }
    if outcome.match_result:
        return DocumentCheckResult(
            strength_score=VALID_DOCUMENT_STRENGTH_SCORE,
            validity_score=VALID_DOCUMENT_VALIDITY_SCORE,
            activity_history_score=VALID_DOCUMENT_ACTIVITY_HISTORY_SCORE,
            activity_from=submission.issue_date.isoformat() if submission.issue_date else None,
            **common,
        )
    return DocumentCheckResult(
        strength_score=INVALID_DOCUMENT_STRENGTH_SCORE,
        validity_score=INVALID_DOCUMENT_VALIDITY_SCORE,
        activity_history_score=INVALID_DOCUMENT_ACTIVITY_HISTORY_SCORE,
        contra_indicators=(INVALID_DOCUMENT_CONTRA_INDICATOR,),
        **common,
    )


def calculate_evidence(result: DocumentCheckResult) -> Evidence:
    """Build the evidence entry for ``result``.

    Non-empty contra-indicators place the check details under
    ``failedCheckDetails``; otherwise they go under ``checkDetails``.
    """
    missing = [
        name
        for name in ("transaction_id", "strength_score", "validity_score", "activity_history_score")
        if getattr(result, name) is None
    ]
    if missing:
        msg = f"Document check result is missing {', '.join(missing)}"
        raise EvidenceConstructionError(msg)

    details = (
        CheckDetails(
            check_method=result.check_method,
            identity_check_policy=result.identity_check_policy,
            activity_from=result.activity_from,
        ),
    )
    failed = bool(result.contra_indicators)

    try:
        evidence = Evidence(
            type=EvidenceType.IDENTITY_CHECK,
            txn=result.transaction_id,
            strength_score=result.strength_score,
            validity_score=result.validity_score,
            activity_history_score=result.activity_history_score,
            check_details=None if failed else details,
            failed_check_details=details if failed else None,
            ci=result.contra_indicators,
        )
    except ValidationError as exc:
        raise EvidenceConstructionError(str(exc)) from exc

    logger.debug("Built evidence for transaction %s (failed=%s)", result.transaction_id, failed)
    return evidence


__all__ = ["calculate_evidence", "score_document_check"]
