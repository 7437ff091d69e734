"""
Configuration loading for the driving permit credential issuer.

Configuration lives in ``config/<environment>.yaml`` at the project root. The
environment is taken from ``DRIVING_PERMIT_ENV`` and string values may reference
environment variables using ``${VAR_NAME}`` or ``${VAR_NAME:-default}``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

ENVIRONMENT_VARIABLE = "DRIVING_PERMIT_ENV"
CONFIG_DIR_VARIABLE = "DRIVING_PERMIT_CONFIG_DIR"
DEFAULT_ENVIRONMENT = "development"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigurationError(Exception):
    """Raised when there's an error loading configuration."""


@dataclass(slots=True)
class DcsConfig:
    """Network identity of the DCS and the key material for JOSE framing.

    ``signing_key_id`` and ``encryption_key_id`` name our private keys in the
    key vault. The two ``*_cert_path`` entries point at PEM files holding the
    DCS public keys or certificates.
    """

    endpoint_url: str
    signing_key_id: str = "dcs-signing"
    encryption_key_id: str = "dcs-encryption"
    dcs_signing_cert_path: str | None = None
    dcs_encryption_cert_path: str | None = None
    timeout_seconds: float = 10.0
    signing_algorithm: str = "RS256"
    key_management_algorithm: str = "RSA-OAEP-256"
    content_encryption_algorithm: str = "A128CBC-HS256"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DcsConfig:
        endpoint = raw.get("endpoint_url")
        if not endpoint:
            msg = "dcs.endpoint_url is required"
            raise ConfigurationError(msg)
        return cls(
            endpoint_url=endpoint,
            signing_key_id=raw.get("signing_key_id", "dcs-signing"),
            encryption_key_id=raw.get("encryption_key_id", "dcs-encryption"),
            dcs_signing_cert_path=raw.get("dcs_signing_cert_path"),
            dcs_encryption_cert_path=raw.get("dcs_encryption_cert_path"),
            timeout_seconds=float(raw.get("timeout_seconds", 10.0)),
            signing_algorithm=raw.get("signing_algorithm", "RS256"),
            key_management_algorithm=raw.get("key_management_algorithm", "RSA-OAEP-256"),
            content_encryption_algorithm=raw.get("content_encryption_algorithm", "A128CBC-HS256"),
        )


@dataclass(slots=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_base: float = 0.0
    backoff_max: float = 5.0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RetryPolicy:
        policy = cls(
            max_attempts=int(raw.get("max_attempts", 3)),
            backoff_base=float(raw.get("backoff_base", 0.0)),
            backoff_max=float(raw.get("backoff_max", 5.0)),
        )
        if policy.max_attempts < 1:
            msg = f"retry.max_attempts must be at least 1, got {policy.max_attempts}"
            raise ConfigurationError(msg)
        return policy


@dataclass(slots=True)
class CredentialConfig:
    issuer: str
    max_jwt_ttl_seconds: int
    signing_key_id: str = "verifiable-credential-signing"
    signing_algorithm: str = "ES256"
    kid: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CredentialConfig:
        issuer = raw.get("issuer")
        if not issuer:
            msg = "credential.issuer is required"
            raise ConfigurationError(msg)
        if "max_jwt_ttl_seconds" not in raw:
            msg = "credential.max_jwt_ttl_seconds is required"
            raise ConfigurationError(msg)
        return cls(
            issuer=issuer,
            max_jwt_ttl_seconds=int(raw["max_jwt_ttl_seconds"]),
            signing_key_id=raw.get("signing_key_id", "verifiable-credential-signing"),
            signing_algorithm=raw.get("signing_algorithm", "ES256"),
            kid=raw.get("kid"),
        )


@dataclass(slots=True)
class KeyVaultConfig:
    provider: str = "file"
    file_path: str | None = "data/keys"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> KeyVaultConfig:
        return cls(
            provider=raw.get("provider", "file"),
            file_path=raw.get("file_path", "data/keys"),
        )


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LoggingConfig:
        return cls(level=str(raw.get("level", "INFO")).upper(), format=raw.get("format", "json"))


@dataclass(slots=True)
class DrivingPermitConfig:
    """Typed view over the loaded configuration file."""

    environment: str
    dcs: DcsConfig
    credential: CredentialConfig
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    key_vault: KeyVaultConfig = field(default_factory=KeyVaultConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, raw: dict[str, Any], environment: str = DEFAULT_ENVIRONMENT) -> DrivingPermitConfig:
        return cls(
            environment=environment,
            dcs=DcsConfig.from_dict(raw.get("dcs", {})),
            credential=CredentialConfig.from_dict(raw.get("credential", {})),
            retry=RetryPolicy.from_dict(raw.get("retry", {})),
            key_vault=KeyVaultConfig.from_dict(raw.get("key_vault", {})),
            logging=LoggingConfig.from_dict(raw.get("logging", {})),
        )

    @classmethod
    def load(cls, environment: str | None = None) -> DrivingPermitConfig:
        environment = (environment or get_environment()).lower()
        return cls.from_dict(load_config(environment), environment)


def get_environment() -> str:
    """
    Get the current environment from the DRIVING_PERMIT_ENV environment variable.
    Defaults to 'development' if not set.
    """
    return os.environ.get(ENVIRONMENT_VARIABLE, DEFAULT_ENVIRONMENT).lower()


def get_config_path(environment: str | None = None) -> Path:
    """
    Get the path to the configuration file for the specified environment.

    ``DRIVING_PERMIT_CONFIG_DIR`` overrides the default ``<project root>/config``.
    """
    if environment is None:
        environment = get_environment()

    config_dir = os.environ.get(CONFIG_DIR_VARIABLE)
    if config_dir:
        base = Path(config_dir)
    else:
        # src/driving_permit_cri/config.py -> project root
        base = Path(__file__).resolve().parent.parent.parent / "config"
    config_path = base / f"{environment}.yaml"

    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise ConfigurationError(msg)

    return config_path


def load_config(environment: str | None = None) -> dict[str, Any]:
    """
    Load configuration from the appropriate YAML file.

    Args:
        environment: The environment to load config for. If None, uses get_environment()

    Returns:
        Configuration dictionary with environment variables expanded
    """
    config_path = get_config_path(environment)

    try:
        with open(config_path, encoding="utf-8") as file:
            config_data = yaml.safe_load(file) or {}
    except yaml.YAMLError as e:
        msg = f"Error parsing YAML configuration file {config_path}: {e}"
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Error reading configuration file {config_path}: {e}"
        raise ConfigurationError(msg) from e

    if not isinstance(config_data, dict):
        msg = f"Configuration file {config_path} must contain a mapping"
        raise ConfigurationError(msg)
    return _expand_env_vars(config_data)


def _expand_env_vars(obj: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.

    Supports format: ${VAR_NAME:-default_value}
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    if isinstance(obj, str):
        return _expand_env_var_string(obj)
    return obj


def _expand_env_var_string(value: str) -> str:
    def replace_var(match: re.Match[str]) -> str:
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default_value = var_expr.split(":-", 1)
            return os.environ.get(var_name, default_value)
        return os.environ.get(var_expr, "")

    return _ENV_VAR_PATTERN.sub(replace_var, value)


__all__ = [
    "ConfigurationError",
    "CredentialConfig",
    "DcsConfig",
    "DrivingPermitConfig",
    "KeyVaultConfig",
    "LoggingConfig",
    "RetryPolicy",
    "get_config_path",
    "get_environment",
    "load_config",
]
