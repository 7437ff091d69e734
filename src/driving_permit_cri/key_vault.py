"""Private keys owned by the driving permit issuer.

Three keys live in the vault: two RSA keys framing the DCS exchange (request
signing and response decryption) and the EC key signing issued credentials.
Development and test environments keep them as PEM files on disk.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from driving_permit_cri.config import CredentialConfig, DcsConfig, KeyVaultConfig

logger = logging.getLogger(__name__)


class KeyAlgorithm(str, Enum):
    RSA_2048 = "rsa2048"
    ECDSA_P256 = "ecdsa-p256"


class KeyVaultClient(Protocol):
    async def ensure_key(self, key_id: str, algorithm: KeyAlgorithm | str) -> None: ...

    async def public_material(self, key_id: str) -> bytes: ...

    async def store_private_key(self, key_id: str, pem: bytes) -> None: ...

    async def load_private_key(self, key_id: str) -> bytes: ...


@dataclass(frozen=True, slots=True)
class DcsKeyPair:
    """Our PEM encoded private keys for the DCS exchange."""

    signing: bytes
    encryption: bytes


class FileKeyVaultClient:
    """Keeps each key as ``<key_id>.pem`` under ``base_path``, readable by the owner only."""

    def __init__(self, base_path: str | Path) -> None:
        self._path = Path(base_path)

    async def ensure_key(self, key_id: str, algorithm: KeyAlgorithm | str) -> None:
        if self._key_file(key_id).exists():
            return
        await self.store_private_key(key_id, generate_private_key_pem(KeyAlgorithm(algorithm)))
        logger.info("Generated %s key %s", KeyAlgorithm(algorithm).value, key_id)

    async def public_material(self, key_id: str) -> bytes:
        private_key = serialization.load_pem_private_key(
            await self.load_private_key(key_id), password=None
        )
        return private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    async def store_private_key(self, key_id: str, pem: bytes) -> None:
        await asyncio.to_thread(self._write, self._key_file(key_id), pem)

    async def load_private_key(self, key_id: str) -> bytes:
        key_file = self._key_file(key_id)
        if not key_file.exists():
            msg = f"Key {key_id} not found"
            raise FileNotFoundError(msg)
        return await asyncio.to_thread(key_file.read_bytes)

    def _key_file(self, key_id: str) -> Path:
        return self._path / f"{key_id}.pem"

    @staticmethod
    def _write(key_file: Path, pem: bytes) -> None:
        key_file.parent.mkdir(parents=True, exist_ok=True)
        key_file.write_bytes(pem)
        key_file.chmod(0o600)


def generate_private_key_pem(algorithm: KeyAlgorithm) -> bytes:
    if algorithm is KeyAlgorithm.RSA_2048:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    else:
        private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


async def ensure_dcs_keys(key_vault: KeyVaultClient, config: DcsConfig) -> DcsKeyPair:
    """Provision (if absent) and load the RSA keys used to frame DCS messages."""
    await key_vault.ensure_key(config.signing_key_id, KeyAlgorithm.RSA_2048)
    await key_vault.ensure_key(config.encryption_key_id, KeyAlgorithm.RSA_2048)
    return DcsKeyPair(
        signing=await key_vault.load_private_key(config.signing_key_id),
        encryption=await key_vault.load_private_key(config.encryption_key_id),
    )


async def ensure_credential_key(key_vault: KeyVaultClient, config: CredentialConfig) -> None:
    """Provision (if absent) the EC key that signs issued credentials."""
    await key_vault.ensure_key(config.signing_key_id, KeyAlgorithm.ECDSA_P256)


def build_key_vault_client(config: KeyVaultConfig) -> KeyVaultClient:
    if config.provider.lower() != "file":
        msg = f"Key vault provider {config.provider} is not supported"
        raise NotImplementedError(msg)
    if not config.file_path:
        msg = "key_vault.file_path is required for the file provider"
        raise ValueError(msg)
    return FileKeyVaultClient(config.file_path)


__all__ = [
    "DcsKeyPair",
    "FileKeyVaultClient",
    "KeyAlgorithm",
    "KeyVaultClient",
    "build_key_vault_client",
    "ensure_credential_key",
    "ensure_dcs_keys",
    "generate_private_key_pem",
]
