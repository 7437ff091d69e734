"""Assembly of the identity check verifiable credential claims set."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from driving_permit_cri.config import CredentialConfig
from driving_permit_cri.exceptions import SigningFailure
from driving_permit_cri.models import DocumentCheckResult, Evidence, PersonIdentity

from .signer import CredentialSigner

logger = logging.getLogger(__name__)

VERIFIABLE_CREDENTIAL_TYPE = "VerifiableCredential"
IDENTITY_CHECK_CREDENTIAL_TYPE = "IdentityCheckCredential"


@dataclass(frozen=True, slots=True)
class SignedCredential:
    token: str
    claims: dict[str, Any]


class VerifiableCredentialService:
    """Builds claims from a check result and hands them to the signer.

    ``nbf`` is the issuance time and ``exp`` is ``nbf`` plus the configured
    maximum time to live.
    """

    def __init__(
        self,
        config: CredentialConfig,
        signer: CredentialSigner,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._signer = signer
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_claims(
        self,
        subject: str,
        result: DocumentCheckResult,
        evidence: Evidence,
        person_identity: PersonIdentity,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        issued_at = int((now or self._clock()).timestamp())
        credential_subject = {
            "address": [address.to_claim() for address in person_identity.addresses],
            "name": [name.to_claim() for name in person_identity.names],
            "birthDate": [birth_date.to_claim() for birth_date in person_identity.birth_dates],
        }
        return {
            "sub": subject,
            "iss": self._config.issuer,
            "nbf": issued_at,
            "exp": issued_at + self._config.max_jwt_ttl_seconds,
            "vc": {
                "type": [VERIFIABLE_CREDENTIAL_TYPE, IDENTITY_CHECK_CREDENTIAL_TYPE],
                "credentialSubject": credential_subject,
                "drivingPermit": [result.driving_permit.to_claim()],
                "evidence": [evidence.to_claim()],
            },
        }

    async def generate_signed_credential(
        self,
        subject: str,
        result: DocumentCheckResult,
        evidence: Evidence,
        person_identity: PersonIdentity,
        now: datetime | None = None,
    ) -> SignedCredential:
        claims = self.build_claims(subject, result, evidence, person_identity, now)
        try:
            token = await self._signer.sign(claims)
        except SigningFailure:
            raise
        except Exception as exc:
            msg = f"Credential signer failed: {exc}"
            raise SigningFailure(msg) from exc
        if not token:
            msg = "Credential signer returned an empty token"
            raise SigningFailure(msg)

        logger.info("Signed verifiable credential for transaction %s", result.transaction_id)
        return SignedCredential(token=token, claims=claims)


__all__ = [
    "IDENTITY_CHECK_CREDENTIAL_TYPE",
    "SignedCredential",
    "VERIFIABLE_CREDENTIAL_TYPE",
    "VerifiableCredentialService",
]
