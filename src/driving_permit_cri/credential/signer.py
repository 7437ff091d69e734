"""Signing capability for verifiable credential claims."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import jwt
from cryptography.hazmat.primitives import serialization

from driving_permit_cri.exceptions import SigningFailure
from driving_permit_cri.key_vault import KeyVaultClient

logger = logging.getLogger(__name__)


class CredentialSigner(Protocol):
    async def sign(self, claims: Mapping[str, Any]) -> str: ...


class KeyVaultCredentialSigner:
    """Signs claims as a compact JWT with a private key held in the key vault."""

    def __init__(
        self,
        key_vault: KeyVaultClient,
        signing_key_id: str,
        *,
        signing_algorithm: str = "ES256",
        kid: str | None = None,
    ) -> None:
        self._key_vault = key_vault
        self._signing_key_id = signing_key_id
        self._signing_algorithm = signing_algorithm
        self._kid = kid

    async def sign(self, claims: Mapping[str, Any]) -> str:
        try:
            private_key_pem = await self._key_vault.load_private_key(self._signing_key_id)
            private_key = serialization.load_pem_private_key(private_key_pem, password=None)
            headers = {"typ": "JWT", "alg": self._signing_algorithm}
            if self._kid:
                headers["kid"] = self._kid
            return jwt.encode(
                dict(claims),
                private_key,
                algorithm=self._signing_algorithm,
                headers=headers,
            )
        except (jwt.PyJWTError, OSError, ValueError, TypeError, NotImplementedError) as exc:
            logger.error("Failed to sign credential with key %s: %s", self._signing_key_id, exc)
            msg = f"Unable to sign credential with key {self._signing_key_id}: {exc}"
            raise SigningFailure(msg) from exc


__all__ = ["CredentialSigner", "KeyVaultCredentialSigner"]
