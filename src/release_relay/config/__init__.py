"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    FileLoggingConfig,
    GitHubConfig,
    LoggingConfig,
    RelayConfig,
    SlackConfig,
    WorkflowConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "RelayConfig",
    # Sections
    "SlackConfig",
    "GitHubConfig",
    "WorkflowConfig",
    "LoggingConfig",
    "FileLoggingConfig",
]
