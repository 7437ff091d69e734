from datetime import datetime, timezone

import jwt
import pytest
from cryptography.hazmat.primitives import serialization

from driving_permit_cri.credential import KeyVaultCredentialSigner, VerifiableCredentialService
from driving_permit_cri.evidence import calculate_evidence, score_document_check
from driving_permit_cri.exceptions import SigningFailure
from driving_permit_cri.models import DcsResponse, Success

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingSigner:
    def __init__(self, token="header.payload.signature"):
        self.token = token
        self.signed = []

    async def sign(self, claims):
        self.signed.append(claims)
        return self.token


class BrokenSigner:
    async def sign(self, claims):
        raise RuntimeError("HSM unavailable")


@pytest.fixture
def check(submission):
    outcome = Success(True, DcsResponse(requestId="txn-1", validDocument=True), attempt_count=1)
    result = score_document_check(outcome, submission)
    return result, calculate_evidence(result)


def test_expiry_is_not_before_plus_ttl(credential_config, check, person_identity):
    result, evidence = check
    service = VerifiableCredentialService(credential_config, RecordingSigner())

    claims = service.build_claims("urn:uuid:subject", result, evidence, person_identity, NOW)

    assert claims["nbf"] == int(NOW.timestamp())
    assert claims["exp"] - claims["nbf"] == 900


def test_clock_supplies_not_before(credential_config, check, person_identity):
    result, evidence = check
    service = VerifiableCredentialService(credential_config, RecordingSigner(), clock=lambda: NOW)

    claims = service.build_claims("urn:uuid:subject", result, evidence, person_identity)

    assert claims["nbf"] == int(NOW.timestamp())


def test_claims_shape(credential_config, check, person_identity):
    result, evidence = check
    service = VerifiableCredentialService(credential_config, RecordingSigner())

    claims = service.build_claims("urn:uuid:subject", result, evidence, person_identity, NOW)

    assert claims["sub"] == "urn:uuid:subject"
    assert claims["iss"] == credential_config.issuer
    vc = claims["vc"]
    assert vc["type"] == ["VerifiableCredential", "IdentityCheckCredential"]
    assert vc["credentialSubject"]["birthDate"] == [{"value": "1965-07-08"}]
    assert vc["credentialSubject"]["name"] == [
        {
            "nameParts": [
                {"type": "GivenName", "value": "KENNETH"},
                {"type": "FamilyName", "value": "DECERQUEIRA"},
            ]
        }
    ]
    assert vc["credentialSubject"]["address"] == [
        {"buildingNumber": "8", "streetName": "HADLEY ROAD", "postalCode": "BA2 5AA"}
    ]
    assert vc["drivingPermit"] == [
        {"documentNumber": "ABC123", "expiryDate": "2042-10-01", "issuedBy": "DVLA"}
    ]
    assert len(vc["evidence"]) == 1


@pytest.mark.asyncio
async def test_example_abc123_without_contra_indicators(credential_config, check, person_identity):
    result, evidence = check
    signer = RecordingSigner()
    service = VerifiableCredentialService(credential_config, signer)

    signed = await service.generate_signed_credential(
        "urn:uuid:subject", result, evidence, person_identity, NOW
    )

    assert signed.token == "header.payload.signature"
    assert signer.signed == [signed.claims]
    assert signed.claims["exp"] - signed.claims["nbf"] == 900
    assert signed.claims["vc"]["drivingPermit"][0]["documentNumber"] == "ABC123"
    evidence_claim = signed.claims["vc"]["evidence"][0]
    assert evidence_claim["checkDetails"] == [
        {"checkMethod": "data", "identityCheckPolicy": "published", "activityFrom": "2018-04-19"}
    ]
    assert "failedCheckDetails" not in evidence_claim
    assert "ci" not in evidence_claim


@pytest.mark.asyncio
async def test_signer_failure_is_signing_failure(credential_config, check, person_identity):
    result, evidence = check
    service = VerifiableCredentialService(credential_config, BrokenSigner())

    with pytest.raises(SigningFailure) as exc_info:
        await service.generate_signed_credential("sub", result, evidence, person_identity, NOW)

    assert exc_info.value.code == 1027
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_empty_token_is_signing_failure(credential_config, check, person_identity):
    result, evidence = check
    service = VerifiableCredentialService(credential_config, RecordingSigner(token=""))

    with pytest.raises(SigningFailure):
        await service.generate_signed_credential("sub", result, evidence, person_identity, NOW)


@pytest.mark.asyncio
async def test_key_vault_signer_produces_verifiable_es256_jwt(key_vault):
    await key_vault.ensure_key("vc-signing", "ecdsa-p256")
    signer = KeyVaultCredentialSigner(key_vault, "vc-signing", kid="kid-1")

    token = await signer.sign({"sub": "subject", "iss": "issuer"})

    public_key = serialization.load_pem_public_key(await key_vault.public_material("vc-signing"))
    assert jwt.get_unverified_header(token)["kid"] == "kid-1"
    assert jwt.decode(token, public_key, algorithms=["ES256"]) == {"sub": "subject", "iss": "issuer"}


@pytest.mark.asyncio
async def test_key_vault_signer_without_key_fails(key_vault):
    signer = KeyVaultCredentialSigner(key_vault, "missing-key")

    with pytest.raises(SigningFailure):
        await signer.sign({"sub": "subject"})


@pytest.mark.asyncio
async def test_key_vault_signer_with_mismatched_algorithm_fails(key_vault):
    await key_vault.ensure_key("rsa-key", "rsa2048")
    signer = KeyVaultCredentialSigner(key_vault, "rsa-key", signing_algorithm="ES256")

    with pytest.raises(SigningFailure):
        await signer.sign({"sub": "subject"})
