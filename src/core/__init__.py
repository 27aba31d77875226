"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, config
from .exceptions import (
    ConfigurationError,
    DataValidationError,
    InsightError,
)
from .logging_config import setup_logging

__all__ = [
    "Config",
    "config",
    "InsightError",
    "DataValidationError",
    "ConfigurationError",
    "setup_logging",
]
