"""
Configuration management for esclient.

This module provides centralized configuration loading and validation using
Pydantic settings. Values are loaded from environment variables or .env files,
with an environment-specific file layered over the base one.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Library(str, Enum):
    """Client generations that can back the library."""
    LEGACY = "legacy"
    GO_ELASTIC_V710 = "GoElastic_v710"
    OPENSEARCH = "OpenSearch"


_ENV_FILES = {
    Environment.DEVELOPMENT: ".env.development",
    Environment.STAGING: ".env.staging",
    Environment.PRODUCTION: ".env.production",
}


def _detect_environment() -> Environment:
    """Environment named by ENVIRONMENT, DEVELOPMENT when unset or unknown."""
    value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    # Later files override earlier ones
    return (".env", _ENV_FILES.get(environment, ".env.development"))


class Settings(BaseSettings):
    """
    Library settings loaded from environment variables.

    Only the cluster address is required. Environment-specific configuration
    is supported through .env.development, .env.staging and .env.production,
    selected by the ENVIRONMENT variable.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Elasticsearch Configuration
    elastic_address: str = Field(
        ...,
        description="Base URL of the Elasticsearch cluster"
    )
    client_library: Library = Field(
        default=Library.LEGACY,
        description="Client generation: 'legacy', 'GoElastic_v710' or 'OpenSearch'"
    )
    indexes: List[str] = Field(
        default_factory=list,
        description="Indexes that must exist for the cluster to be reported healthy"
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Maximum number of retries for the legacy HTTP transport"
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for a single HTTP request"
    )

    # Health Check Configuration
    treat_yellow_as_warning: bool = Field(
        default=False,
        description="Report a yellow cluster as WARNING instead of OK"
    )
    index_check_fail_fast: bool = Field(
        default=True,
        description="Stop probing indexes at the first missing one"
    )

    # AWS Signing Configuration
    sign_requests: bool = Field(
        default=False,
        description="Sign requests to the cluster with AWS SigV4"
    )
    aws_sdk_signer: bool = Field(
        default=False,
        description="Use boto3 credentials and the configured region/service when signing"
    )
    aws_region: Optional[str] = Field(
        default=None,
        description="AWS region used by the SDK signer"
    )
    aws_service: str = Field(
        default="es",
        description="AWS service name used by the SDK signer"
    )

    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("elastic_address")
    @classmethod
    def validate_elastic_address(cls, v: str) -> str:
        """Validate that elastic_address is not empty and is a valid URL format."""
        if not v or not v.strip():
            raise ValueError("elastic_address cannot be empty")
        v = v.strip().rstrip("/")
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("elastic_address must be a valid HTTP/HTTPS URL")
        return v

    @field_validator("indexes")
    @classmethod
    def validate_indexes(cls, v: List[str]) -> List[str]:
        """Strip index names and reject empty ones."""
        validated = []
        for index in v:
            index = index.strip()
            if not index:
                raise ValueError("indexes cannot contain empty index names")
            validated.append(index)
        return validated

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v

    @model_validator(mode="after")
    def validate_signing_config(self) -> "Settings":
        """Validate that the SDK signer has a region when signing is enabled."""
        if self.sign_requests and self.aws_sdk_signer and not self.aws_region:
            raise ValueError(
                "aws_region is required when sign_requests and aws_sdk_signer are enabled"
            )
        return self


class ConfigurationError(Exception):
    """Raised when settings cannot be loaded; lists every offending field."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        lines = [self.message]
        if self.missing_fields:
            lines.append(f"Missing required fields: {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            lines.append("Invalid field values:")
            lines.extend(f"  - {name}: {error}" for name, error in self.invalid_fields.items())
        return "\n".join(lines)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Load Settings with the .env files of an environment layered over .env.

    Args:
        environment: Target environment, detected from ENVIRONMENT when omitted.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    environment = environment or _detect_environment()
    env_files = tuple(f for f in _get_env_files(environment) if Path(f).exists())

    try:
        return Settings(_env_file=env_files or None)
    except ValidationError as e:
        missing_fields = []
        invalid_fields = {}
        for error in e.errors():
            field_name = ".".join(str(loc) for loc in error.get("loc", ()))
            if error.get("type") == "missing":
                missing_fields.append(field_name)
            else:
                invalid_fields[field_name] = error.get("msg", "")

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the cached Settings, loading them on first use."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()
    return _settings_cache


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() reloads them."""
    global _settings_cache
    _settings_cache = None


def get_environment_info() -> dict:
    """Report the detected environment and which of its .env files exist."""
    environment = _detect_environment()
    env_files = _get_env_files(environment)
    return {
        "environment": environment.value,
        "env_files_checked": list(env_files),
        "env_files_loaded": [f for f in env_files if Path(f).exists()],
    }
