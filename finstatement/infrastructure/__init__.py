"""Configuration, logging and tracing shared by every module."""

from .config import AppConfig, Environment, Settings, get_config, get_project_root, get_settings
from .logger import get_logger, log_operation, set_correlation_id, setup_logging

__all__ = [
    # Config
    "AppConfig",
    "Environment",
    "Settings",
    "get_config",
    "get_settings",
    "get_project_root",
    # Logging
    "get_logger",
    "log_operation",
    "set_correlation_id",
    "setup_logging",
]
