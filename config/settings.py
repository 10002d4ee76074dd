"""
Configuration management for the session service.

This module provides centralized configuration loading and validation using Pydantic settings.
Connection strings and session options are loaded from environment variables or .env files.

Environment-specific files (.env.development, .env.staging, .env.production) override
the base .env file according to the ENVIRONMENT variable.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class SessionDriver(str, Enum):
    """Available session backends."""
    MONGODB = "mongodb"
    MEMORY = "memory"


class ExpiryMode(str, Enum):
    """How expired sessions are physically removed."""
    TTL_INDEX = "ttl_index"
    SWEEP = "sweep"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    Files are loaded in order, with later files overriding earlier ones.

    Args:
        environment: The target environment.

    Returns:
        Tuple of .env file paths to load.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }

    env_specific_file = env_file_map.get(environment, ".env.development")

    return (".env", env_specific_file)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The MongoDB connection string is required outside development when the
    mongodb driver is selected. The application will fail to start if
    fields are missing or invalid.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Session Configuration
    session_driver: SessionDriver = Field(
        default=SessionDriver.MONGODB,
        description="Session backend: 'mongodb' or 'memory'"
    )
    session_database: str = Field(
        default="app",
        description="Database holding the sessions collection"
    )
    session_collection: str = Field(
        default="sessions",
        description="Collection storing one document per session"
    )
    session_lifetime_minutes: int = Field(
        default=120,
        ge=1,
        le=525600,  # One year
        description="Session time-to-live in minutes"
    )
    session_expiry_mode: ExpiryMode = Field(
        default=ExpiryMode.TTL_INDEX,
        description="Physical expiry: 'ttl_index' (MongoDB TTL index) or 'sweep' (periodic gc)"
    )
    session_sweep_interval_seconds: int = Field(
        default=60,
        ge=1,
        le=86400,
        description="Interval between expiry sweeps when sweeping is enabled"
    )

    # Request Metadata
    trust_forwarded_headers: bool = Field(
        default=False,
        description="Take the client IP from X-Forwarded-For / X-Real-IP (only behind a trusted proxy)"
    )

    # MongoDB Configuration
    mongodb_uri: Optional[str] = Field(
        default=None,
        description="MongoDB connection string"
    )
    mongodb_connect_timeout_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Timeout for establishing a connection, in milliseconds"
    )
    mongodb_server_selection_timeout_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Timeout for selecting a server for an operation, in milliseconds"
    )
    mongodb_socket_timeout_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Timeout for a send or receive on a socket, in milliseconds"
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

    @field_validator("mongodb_uri")
    @classmethod
    def validate_mongodb_uri(cls, v: Optional[str]) -> Optional[str]:
        """Validate that mongodb_uri uses a MongoDB connection string scheme."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("mongodb_uri cannot be empty")
        if not (v.startswith("mongodb://") or v.startswith("mongodb+srv://")):
            raise ValueError("mongodb_uri must start with mongodb:// or mongodb+srv://")
        return v

    @field_validator("session_database", "session_collection")
    @classmethod
    def validate_names(cls, v: str) -> str:
        """Database and collection names must be non-empty and free of '$'."""
        v = v.strip()
        if not v:
            raise ValueError("session database/collection name cannot be empty")
        if "$" in v:
            raise ValueError("session database/collection name cannot contain '$'")
        return v

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
    def validate_session_store_config(self) -> "Settings":
        """Validate that the selected driver has what it needs."""
        if self.session_driver == SessionDriver.MONGODB and not self.mongodb_uri:
            # In development, fall back to a local server
            if self.environment != Environment.DEVELOPMENT:
                raise ValueError(
                    "mongodb_uri is required when session_driver is 'mongodb' "
                    "in non-development environments"
                )
            self.mongodb_uri = "mongodb://localhost:27017"
        elif self.session_driver == SessionDriver.MEMORY:
            if self.environment == Environment.PRODUCTION:
                raise ValueError(
                    "session_driver 'memory' is not allowed in production"
                )
        return self

    @property
    def session_lifetime_seconds(self) -> int:
        return self.session_lifetime_minutes * 60


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append(f"\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Factory function to create Settings for a specific environment.

    This function detects the environment from the ENVIRONMENT variable (if not provided)
    and loads the appropriate environment-specific .env file.

    Args:
        environment: Optional environment override. If not provided, detected from
                    ENVIRONMENT variable.

    Returns:
        Settings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)

    existing_env_files = [env_file for env_file in env_files if Path(env_file).exists()]

    # If no env files exist, use the default tuple (pydantic will handle missing files)
    if not existing_env_files:
        existing_env_files = list(env_files)

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        # Extract field-level errors from Pydantic ValidationError
        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', []))
                error_type = error.get('type', '')
                error_msg = error.get('msg', str(error))

                if error_type == 'missing':
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error_msg

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Returns:
        Settings: The validated application settings.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None


def validate_startup(settings: Optional[Settings] = None) -> None:
    """
    Validate settings that depend on each other at application startup.

    Args:
        settings: Settings to check. Loaded with get_settings if omitted.

    Raises:
        ConfigurationError: If any settings are inconsistent.
    """
    settings = settings or get_settings()

    validation_errors = {}

    # A sweep interval longer than the lifetime leaves expired sessions around
    # for more than a full lifetime
    sweeping = (
        settings.session_expiry_mode == ExpiryMode.SWEEP
        or settings.session_driver == SessionDriver.MEMORY
    )
    if (
        sweeping
        and settings.session_sweep_interval_seconds > settings.session_lifetime_seconds
    ):
        validation_errors["session_sweep_interval_seconds"] = (
            f"Sweep interval ({settings.session_sweep_interval_seconds}s) exceeds "
            f"the session lifetime ({settings.session_lifetime_seconds}s)"
        )

    if settings.environment == Environment.PRODUCTION and settings.mongodb_uri:
        if "localhost" in settings.mongodb_uri or "127.0.0.1" in settings.mongodb_uri:
            validation_errors["mongodb_uri"] = (
                "Production environment requires a non-localhost MongoDB server"
            )

    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )

