"""Verifiable credential assembly and signing."""

from .service import SignedCredential, VerifiableCredentialService
from .signer import CredentialSigner, KeyVaultCredentialSigner

__all__ = [
    "CredentialSigner",
    "KeyVaultCredentialSigner",
    "SignedCredential",
    "VerifiableCredentialService",
]
