"""
Logging configuration for the insight engine.

Provides console logging and optional rotating file output.
Integrates with config for environment-specific log levels.
"""

import logging
import logging.handlers

from .config import config


def setup_logging(
    logger_name: str = "src", log_file_name: str = "dispatch_insights.log"
) -> logging.Logger:
    """
    Configure and return a logger instance.

    Module loggers are created with getLogger(__name__), so configuring the
    "src" logger covers every package in the project.

    Args:
        logger_name: Name of the logger to configure
        log_file_name: File name used when file logging is enabled

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Don't add handlers if logger already configured
    if logger.handlers:
        return logger

    logger.setLevel(config.log_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.log_to_file:
        log_file = config.logs_dir / log_file_name
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(config.log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Package root logger
logger = setup_logging()
