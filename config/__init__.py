# Configuration module for the session service
from .settings import (
    Settings,
    Environment,
    SessionDriver,
    ExpiryMode,
    ConfigurationError,
    get_settings,
    validate_startup,
)

__all__ = [
    "Settings",
    "Environment",
    "SessionDriver",
    "ExpiryMode",
    "ConfigurationError",
    "get_settings",
    "validate_startup",
]
