import json

import pytest

from driving_permit_cri.config import ConfigurationError, DcsConfig
from driving_permit_cri.dcs import DcsJoseFraming, JoseFramingError, load_jwk_from_pem


def test_wrapped_payload_unwraps_on_the_dcs_side(framing, dcs_stub):
    token = framing.wrap(json.dumps({"requestId": "abc"}))

    assert token.count(".") == 2
    assert dcs_stub.read_request(token) == {"requestId": "abc"}


def test_dcs_response_unwraps_on_the_client_side(framing, dcs_stub):
    token = dcs_stub.response_body("abc", valid_document=True)

    assert json.loads(framing.unwrap(token))["validDocument"] is True


def test_unwrap_rejects_tampered_payload(framing, dcs_stub):
    token = dcs_stub.response_body("abc")
    header, _, signature = token.split(".")
    tampered = ".".join([header, "e30", signature])

    with pytest.raises(JoseFramingError):
        framing.unwrap(tampered)


def test_unwrap_rejects_message_signed_by_another_key(framing):
    # Our own framing signs with our key, not the DCS signing key.
    token = framing.wrap(b"{}")

    with pytest.raises(JoseFramingError):
        framing.unwrap(token)


def test_unwrap_rejects_garbage(framing):
    with pytest.raises(JoseFramingError):
        framing.unwrap("not-a-jws")


def test_signing_kid_is_key_thumbprint(framing, jose_keys):
    assert framing.signing_kid == jose_keys.signing.thumbprint()


def test_from_pem_accepts_private_and_public_keys(jose_keys, dcs_stub):
    framing = DcsJoseFraming.from_pem(
        signing_key=jose_keys.signing.export_to_pem(private_key=True, password=None),
        encryption_key=jose_keys.encryption.export_to_pem(private_key=True, password=None),
        dcs_signing_cert=jose_keys.dcs_signing.export_to_pem(),
        dcs_encryption_cert=jose_keys.dcs_encryption.export_to_pem(),
        config=DcsConfig(endpoint_url="http://dcs.test"),
    )

    assert dcs_stub.read_request(framing.wrap(b'{"ok": true}')) == {"ok": True}


def test_load_jwk_from_pem_rejects_non_pem():
    with pytest.raises(JoseFramingError):
        load_jwk_from_pem(b"not a pem")


@pytest.mark.asyncio
async def test_from_key_vault_loads_vault_keys_and_dcs_certificates(tmp_path, key_vault, jose_keys):
    signing_cert = tmp_path / "dcs-signing.pem"
    encryption_cert = tmp_path / "dcs-encryption.pem"
    signing_cert.write_bytes(jose_keys.dcs_signing.export_to_pem())
    encryption_cert.write_bytes(jose_keys.dcs_encryption.export_to_pem())
    config = DcsConfig(
        endpoint_url="http://dcs.test",
        dcs_signing_cert_path=str(signing_cert),
        dcs_encryption_cert_path=str(encryption_cert),
    )

    framing = await DcsJoseFraming.from_key_vault(key_vault, config)

    assert framing.wrap(b"{}").count(".") == 2
    assert await key_vault.load_private_key(config.signing_key_id)
    assert await key_vault.load_private_key(config.encryption_key_id)


@pytest.mark.asyncio
async def test_from_key_vault_requires_dcs_certificate_paths(key_vault):
    with pytest.raises(ConfigurationError):
        await DcsJoseFraming.from_key_vault(key_vault, DcsConfig(endpoint_url="http://dcs.test"))
