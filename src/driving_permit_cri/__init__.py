"""Driving permit document check and verifiable credential issuer."""

__version__ = "0.1.0"

from .exceptions import DrivingPermitError, ErrorResponse
from .issuer import DrivingPermitCredentialIssuer, IssuedCredential, build_issuer

__all__ = [
    "DrivingPermitCredentialIssuer",
    "DrivingPermitError",
    "ErrorResponse",
    "IssuedCredential",
    "__version__",
    "build_issuer",
]
