#!/usr/bin/env python3
"""
Logging utilities for SubRouter
Provides the application logger and a few structured helpers
"""

import logging
import sys
from typing import Optional

LOGGER_NAME = "SubRouter"

# Configure logging
def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration"""

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console goes to stderr so stdout stays clean for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create file handler for {log_file}: {e}")

    return logger

def get_logger() -> logging.Logger:
    """Get the application logger instance"""
    return logging.getLogger(LOGGER_NAME)

def log_error_with_context(error: Exception, context: str, **kwargs) -> None:
    """Log error with additional context"""
    details = ', '.join(f"{k}={v}" for k, v in kwargs.items())
    suffix = f" ({details})" if details else ""
    get_logger().error(f"Error in {context}: {str(error)}{suffix}")

def log_network_error(url: str, error: Exception, attempt: int = 0) -> None:
    """Log network-related errors with URL context"""
    get_logger().warning(f"Network error fetching {url} (attempt {attempt + 1}): {str(error)}")

def log_statistics(stats: dict) -> None:
    """Log statistics in a structured way"""
    logger = get_logger()
    logger.info("Statistics:")
    for key, value in stats.items():
        logger.info(f"  {key}: {value}")
