"""
Test configuration for the driving permit credential issuer test suite.
"""

import os
from datetime import date
from typing import NamedTuple

import pytest
from jwcrypto import jwk

from driving_permit_cri.config import CredentialConfig, DcsConfig, RetryPolicy
from driving_permit_cri.dcs import DcsJoseFraming
from driving_permit_cri.key_vault import FileKeyVaultClient
from driving_permit_cri.models import (
    Address,
    BirthDate,
    Name,
    NamePart,
    NamePartType,
    PermitSubmission,
    PersonIdentity,
)
from tests.fixtures.dcs_stub import DcsStub

DCS_ENDPOINT = "http://dcs.test/driving-licence"
ISSUER = "https://driving-permit-cri.test"


# Test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to everything under tests/unit."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


# Test environment setup
@pytest.fixture(scope="session", autouse=True)
def test_environment_setup():
    """Set up test environment."""
    original_env = os.environ.copy()

    os.environ["DRIVING_PERMIT_ENV"] = "testing"
    os.environ["LOG_LEVEL"] = "DEBUG"

    yield

    os.environ.clear()
    os.environ.update(original_env)


class JoseKeys(NamedTuple):
    signing: jwk.JWK
    encryption: jwk.JWK
    dcs_signing: jwk.JWK
    dcs_encryption: jwk.JWK


@pytest.fixture(scope="session")
def jose_keys() -> JoseKeys:
    return JoseKeys(*(jwk.JWK.generate(kty="RSA", size=2048) for _ in range(4)))


@pytest.fixture
def framing(jose_keys):
    """Client side framing: our private keys, the DCS public keys."""
    return DcsJoseFraming(
        jose_keys.signing,
        jose_keys.encryption,
        jose_keys.dcs_signing.public(),
        jose_keys.dcs_encryption.public(),
    )


@pytest.fixture
def dcs_stub(jose_keys):
    return DcsStub(
        DcsJoseFraming(
            jose_keys.dcs_signing,
            jose_keys.dcs_encryption,
            jose_keys.signing.public(),
            jose_keys.encryption.public(),
        )
    )


@pytest.fixture
def dcs_config():
    return DcsConfig(endpoint_url=DCS_ENDPOINT, timeout_seconds=2.0)


@pytest.fixture
def retry_policy():
    return RetryPolicy(max_attempts=3, backoff_base=0.0)


@pytest.fixture
def credential_config():
    return CredentialConfig(issuer=ISSUER, max_jwt_ttl_seconds=900, kid="test-kid")


@pytest.fixture
def key_vault(tmp_path):
    return FileKeyVaultClient(tmp_path / "keys")


@pytest.fixture
def submission():
    return PermitSubmission(
        licence_number="ABC123",
        surname="DECERQUEIRA",
        forenames=("KENNETH",),
        postcode="BA2 5AA",
        date_of_birth=date(1965, 7, 8),
        issue_date=date(2018, 4, 19),
        expiry_date=date(2042, 10, 1),
        issue_number="23",
        licence_issuer="DVLA",
    )


@pytest.fixture
def person_identity():
    return PersonIdentity(
        addresses=(Address(building_number="8", street_name="HADLEY ROAD", postal_code="BA2 5AA"),),
        names=(
            Name(
                name_parts=(
                    NamePart(type=NamePartType.GIVEN_NAME, value="KENNETH"),
                    NamePart(type=NamePartType.FAMILY_NAME, value="DECERQUEIRA"),
                )
            ),
        ),
        birth_dates=(BirthDate(value=date(1965, 7, 8)),),
    )
