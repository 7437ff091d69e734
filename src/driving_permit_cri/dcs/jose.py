"""Sign, encrypt, sign framing for messages exchanged with the DCS.

Outbound requests are signed with our key, encrypted to the DCS encryption
key and signed again. Responses arrive in the same shape from the DCS side and
are unwrapped in reverse order.
"""

from __future__ import annotations

import logging
from pathlib import Path

from jwcrypto import jwe, jwk, jws
from jwcrypto.common import JWException, json_encode

from driving_permit_cri.config import ConfigurationError, DcsConfig
from driving_permit_cri.key_vault import KeyVaultClient, ensure_dcs_keys

logger = logging.getLogger(__name__)


class JoseFramingError(Exception):
    """Raised when a message cannot be wrapped or unwrapped."""


def load_jwk_from_pem(pem: bytes) -> jwk.JWK:
    """Load a private key, public key or X.509 certificate as a JWK."""
    try:
        return jwk.JWK.from_pem(pem)
    except (ValueError, TypeError, JWException) as exc:
        msg = f"Unable to load key material from PEM: {exc}"
        raise JoseFramingError(msg) from exc


class DcsJoseFraming:
    """Holds the four keys of a DCS exchange and applies the JOSE layers."""

    def __init__(
        self,
        signing_key: jwk.JWK,
        encryption_key: jwk.JWK,
        dcs_signing_key: jwk.JWK,
        dcs_encryption_key: jwk.JWK,
        *,
        signing_algorithm: str = "RS256",
        key_management_algorithm: str = "RSA-OAEP-256",
        content_encryption_algorithm: str = "A128CBC-HS256",
    ) -> None:
        self._signing_key = signing_key
        self._encryption_key = encryption_key
        self._dcs_signing_key = dcs_signing_key
        self._dcs_encryption_key = dcs_encryption_key
        self._signing_algorithm = signing_algorithm
        self._key_management_algorithm = key_management_algorithm
        self._content_encryption_algorithm = content_encryption_algorithm

    @property
    def signing_kid(self) -> str:
        return self._signing_key.thumbprint()

    def wrap(self, payload: bytes | str) -> str:
        """Produce the compact outer JWS carrying ``payload``."""
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        try:
            inner = self._sign(payload)
            encrypted = self._encrypt(inner.encode("utf-8"))
            return self._sign(encrypted.encode("utf-8"))
        except JWException as exc:
            msg = f"Failed to frame DCS payload: {exc}"
            raise JoseFramingError(msg) from exc

    def unwrap(self, token: str) -> bytes:
        """Verify, decrypt and verify a DCS message, returning the inner payload."""
        try:
            encrypted = self._verify(token.strip(), self._dcs_signing_key)
            inner = self._decrypt(encrypted.decode("utf-8"))
            return self._verify(inner.decode("utf-8"), self._dcs_signing_key)
        except (JWException, ValueError, UnicodeDecodeError) as exc:
            msg = f"Failed to unwrap DCS response: {exc}"
            raise JoseFramingError(msg) from exc

    def _sign(self, payload: bytes) -> str:
        token = jws.JWS(payload)
        token.add_signature(
            self._signing_key,
            alg=None,
            protected=json_encode(
                {"alg": self._signing_algorithm, "typ": "JWT", "kid": self.signing_kid}
            ),
        )
        return token.serialize(compact=True)

    def _encrypt(self, payload: bytes) -> str:
        token = jwe.JWE(
            payload,
            protected=json_encode(
                {
                    "alg": self._key_management_algorithm,
                    "enc": self._content_encryption_algorithm,
                    "cty": "JWT",
                    "kid": self._dcs_encryption_key.thumbprint(),
                }
            ),
        )
        token.add_recipient(self._dcs_encryption_key)
        return token.serialize(compact=True)

    def _verify(self, token: str, key: jwk.JWK) -> bytes:
        message = jws.JWS()
        message.deserialize(token)
        message.verify(key, alg=self._signing_algorithm)
        return message.payload

    def _decrypt(self, token: str) -> bytes:
        message = jwe.JWE()
        message.deserialize(token, key=self._encryption_key)
        return message.payload

    @classmethod
    def from_pem(
        cls,
        *,
        signing_key: bytes,
        encryption_key: bytes,
        dcs_signing_cert: bytes,
        dcs_encryption_cert: bytes,
        config: DcsConfig | None = None,
    ) -> DcsJoseFraming:
        options = {}
        if config is not None:
            options = {
                "signing_algorithm": config.signing_algorithm,
                "key_management_algorithm": config.key_management_algorithm,
                "content_encryption_algorithm": config.content_encryption_algorithm,
            }
        return cls(
            load_jwk_from_pem(signing_key),
            load_jwk_from_pem(encryption_key),
            load_jwk_from_pem(dcs_signing_cert),
            load_jwk_from_pem(dcs_encryption_cert),
            **options,
        )

    @classmethod
    async def from_key_vault(cls, key_vault: KeyVaultClient, config: DcsConfig) -> DcsJoseFraming:
        """Load our private keys from the vault and the DCS keys from disk."""
        if not config.dcs_signing_cert_path or not config.dcs_encryption_cert_path:
            msg = "dcs.dcs_signing_cert_path and dcs.dcs_encryption_cert_path are required"
            raise ConfigurationError(msg)

        keys = await ensure_dcs_keys(key_vault, config)

        try:
            dcs_signing_cert = Path(config.dcs_signing_cert_path).read_bytes()
            dcs_encryption_cert = Path(config.dcs_encryption_cert_path).read_bytes()
        except OSError as exc:
            msg = f"Unable to read DCS key material: {exc}"
            raise ConfigurationError(msg) from exc

        logger.info("Loaded DCS JOSE key material (signing key id %s)", config.signing_key_id)
        return cls.from_pem(
            signing_key=keys.signing,
            encryption_key=keys.encryption,
            dcs_signing_cert=dcs_signing_cert,
            dcs_encryption_cert=dcs_encryption_cert,
            config=config,
        )


__all__ = ["DcsJoseFraming", "JoseFramingError", "load_jwk_from_pem"]
