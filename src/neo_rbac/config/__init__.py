"""Configuration for neo-rbac: settings and logging."""

from .settings import RbacSettings, get_settings
from .logging_config import (
    LoggingConfig,
    LogFormat,
    LogLevel,
    LogVerbosity,
    get_logger,
    setup_logging,
)

__all__ = [
    "RbacSettings",
    "get_settings",
    "LoggingConfig",
    "LogFormat",
    "LogLevel",
    "LogVerbosity",
    "get_logger",
    "setup_logging",
]
