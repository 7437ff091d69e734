"""End-to-end driving permit check and credential issuance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from driving_permit_cri.config import DrivingPermitConfig
from driving_permit_cri.credential import (
    KeyVaultCredentialSigner,
    VerifiableCredentialService,
)
from driving_permit_cri.credential.signer import CredentialSigner
from driving_permit_cri.dcs import (
    DcsJoseFraming,
    HttpxVerificationTransport,
    RetryController,
    VerificationRequestBuilder,
    VerificationResponseInterpreter,
)
from driving_permit_cri.dcs.transport import VerificationTransport
from driving_permit_cri.evidence import calculate_evidence, score_document_check
from driving_permit_cri.exceptions import DrivingPermitError
from driving_permit_cri.key_vault import (
    KeyVaultClient,
    build_key_vault_client,
    ensure_credential_key,
)
from driving_permit_cri.logging_config import BusinessEventLogger
from driving_permit_cri.models import (
    DocumentCheckResult,
    Evidence,
    PermitSubmission,
    PersonIdentity,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedCredential:
    token: str
    claims: dict[str, Any]
    check_result: DocumentCheckResult
    evidence: Evidence


class DrivingPermitCredentialIssuer:
    """Checks a permit submission with the DCS and issues a signed credential."""

    def __init__(
        self,
        retry_controller: RetryController,
        credential_service: VerifiableCredentialService,
        *,
        events: BusinessEventLogger | None = None,
        owned_transport: HttpxVerificationTransport | None = None,
    ) -> None:
        self._retry_controller = retry_controller
        self._credential_service = credential_service
        self._events = events or BusinessEventLogger()
        self._owned_transport = owned_transport

    async def aclose(self) -> None:
        """Close the HTTP transport if this issuer created it."""
        if self._owned_transport is not None:
            await self._owned_transport.aclose()

    async def __aenter__(self) -> DrivingPermitCredentialIssuer:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def verify_and_issue(
        self,
        subject: str,
        submission: PermitSubmission,
        person_identity: PersonIdentity,
        *,
        timeout: float | None = None,
    ) -> IssuedCredential:
        try:
            outcome = await self._retry_controller.run(submission, timeout=timeout)
            result = score_document_check(outcome, submission)
            self._events.log_verification_result(
                result.transaction_id, result.valid_document, result.attempt_count
            )
            evidence = calculate_evidence(result)
            signed = await self._credential_service.generate_signed_credential(
                subject, result, evidence, person_identity
            )
        except DrivingPermitError as exc:
            self._events.log_verification_failed(
                exc.code, exc.reason, category=exc.category.value, status_class=exc.status_class
            )
            raise

        self._events.log_credential_issued(
            signed.claims["iss"], result.transaction_id, signed.claims["exp"]
        )
        return IssuedCredential(
            token=signed.token,
            claims=signed.claims,
            check_result=result,
            evidence=evidence,
        )


async def build_issuer(
    config: DrivingPermitConfig,
    *,
    key_vault: KeyVaultClient | None = None,
    transport: VerificationTransport | None = None,
    signer: CredentialSigner | None = None,
) -> DrivingPermitCredentialIssuer:
    """Wire an issuer from configuration.

    Collaborators may be injected; anything omitted is built from ``config``.
    Close the returned issuer (``aclose`` or ``async with``) to release the
    HTTP client it creates when no transport is given.
    """
    key_vault = key_vault or build_key_vault_client(config.key_vault)
    framing = await DcsJoseFraming.from_key_vault(key_vault, config.dcs)

    if signer is None:
        await ensure_credential_key(key_vault, config.credential)
        signer = KeyVaultCredentialSigner(
            key_vault,
            config.credential.signing_key_id,
            signing_algorithm=config.credential.signing_algorithm,
            kid=config.credential.kid,
        )

    owned_transport = None
    if transport is None:
        transport = owned_transport = HttpxVerificationTransport()

    controller = RetryController(
        VerificationRequestBuilder(framing, config.dcs),
        transport,
        VerificationResponseInterpreter(framing),
        config.retry,
    )
    logger.info(
        "Driving permit issuer ready (environment=%s, max_attempts=%d)",
        config.environment,
        config.retry.max_attempts,
    )
    return DrivingPermitCredentialIssuer(
        controller,
        VerifiableCredentialService(config.credential, signer),
        owned_transport=owned_transport,
    )


__all__ = ["DrivingPermitCredentialIssuer", "IssuedCredential", "build_issuer"]
