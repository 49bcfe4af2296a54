"""Centralized logging configuration for neo-rbac.

Provides consistent, configurable logging with environment-based control over
verbosity and format. Library modules only call ``logging.getLogger(__name__)``;
applications call ``setup_logging()`` once at startup.
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Optional


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Standard logging (warnings and above)
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level."""
    verbosity_map = {
        LogVerbosity.QUIET: LogLevel.ERROR.value,
        LogVerbosity.NORMAL: LogLevel.WARNING.value,
        LogVerbosity.VERBOSE: LogLevel.INFO.value,
        LogVerbosity.DEBUG: LogLevel.DEBUG.value,
    }
    try:
        return verbosity_map[LogVerbosity(verbosity.upper())]
    except ValueError:
        return LogLevel.WARNING.value


class LoggingConfig:
    """Centralized logging configuration manager."""
    
    # Chatty per-check modules, kept at WARNING unless debugging
    DEFAULT_QUIET_MODULES = [
        "neo_rbac.infrastructure.cache",
        "neo_rbac.application.services.permission_gate",
    ]
    
    # Modules that should only log errors
    ERROR_ONLY_MODULES = [
        "asyncio",
        "asyncpg",
        "redis",
    ]
    
    FORMATS = {
        LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
        LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
    }
    
    @classmethod
    def build(cls, verbosity: str = "NORMAL", log_format: str = "simple") -> dict:
        """Build a dictConfig mapping for the given verbosity and format."""
        effective_log_level = get_log_level_from_verbosity(verbosity)
        try:
            format_string = cls.FORMATS[LogFormat(log_format.lower())]
        except ValueError:
            format_string = cls.FORMATS[LogFormat.SIMPLE]
        
        logging_config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": format_string,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": effective_log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": effective_log_level,
                "handlers": ["console"],
            },
            "loggers": {}
        }
        
        for module in cls.DEFAULT_QUIET_MODULES:
            logging_config["loggers"][module] = {
                "level": "WARNING" if effective_log_level != "DEBUG" else "DEBUG",
                "handlers": ["console"],
                "propagate": False,
            }
        
        for module in cls.ERROR_ONLY_MODULES:
            logging_config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }
        
        return logging_config
    
    @classmethod
    def configure(cls, verbosity: Optional[str] = None, log_format: Optional[str] = None) -> None:
        """Configure logging from arguments, falling back to environment variables."""
        log_verbosity = (verbosity or os.getenv("LOG_VERBOSITY", "NORMAL")).upper()
        log_format = log_format or os.getenv("LOG_FORMAT", "simple")
        
        logging.config.dictConfig(cls.build(log_verbosity, log_format))
        
        logger = logging.getLogger(__name__)
        logger.debug(f"Logging configured: verbosity={log_verbosity}, format={log_format}")
    
    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module.
        
        Args:
            module_name: Name of the module
            level: Log level to set
        """
        logger = logging.getLogger(module_name)
        logger.setLevel(getattr(logging, level.upper()))
    
    @classmethod
    def silence_module(cls, module_name: str) -> None:
        """Silence all logging from a module."""
        cls.set_module_level(module_name, "CRITICAL")


def setup_logging(settings=None) -> None:
    """Setup logging configuration from settings or environment variables.
    
    This is the main entry point for configuring logging in an application
    embedding the engine. It should be called once at application startup.
    """
    if settings is None:
        LoggingConfig.configure()
    else:
        LoggingConfig.configure(settings.log_verbosity, settings.log_format)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name (usually __name__)."""
    return logging.getLogger(name)
