"""Utility functions and helpers.

This module provides various utilities for Release Relay:
- security: Secret redaction, input validation
- logging: Structured logging with secret sanitization
- health: Health check utilities
"""

from release_relay.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from release_relay.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
)

__all__ = [
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
