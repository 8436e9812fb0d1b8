#!/usr/bin/env python3
"""
Error handling utilities for SubRouter
Exception hierarchy plus helpers to keep one failing section from stopping the rest
"""

import traceback
import sys
from typing import Optional, Callable, Any, Dict, List
from functools import wraps

from logger import get_logger, log_error_with_context

logger = get_logger()

class SubRouterError(Exception):
    """Base exception for SubRouter"""
    pass

class ConfigurationError(SubRouterError):
    """Raised when there's a configuration error"""
    pass

class FetchError(SubRouterError):
    """Raised when a subscription could not be retrieved"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url

class DecodeError(SubRouterError):
    """Raised when a payload is present but cannot be decoded"""
    pass

class UnsupportedTypeError(SubRouterError):
    """Raised for a subscription type outside auto/structured/legacy"""
    pass

class ConfigMissing(SubRouterError):
    """Raised when a section has no subscription URL configured"""
    pass

class CacheError(SubRouterError):
    """Raised when the cache store cannot read or write an entry"""
    pass

def handle_exception(operation: str, reraise: bool = False, default: Any = None):
    """Decorator for handling exceptions in functions"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                logger.info(f"Operation '{operation}' interrupted by user")
                raise
            except SubRouterError as e:
                log_error_with_context(e, operation)
                if reraise:
                    raise
                return default
        return wrapper
    return decorator

def setup_global_exception_handler():
    """Setup global exception handler for uncaught exceptions"""
    def handle_uncaught(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            logger.info("Application interrupted by user")
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_uncaught

class ErrorAggregator:
    """Collect and manage multiple errors"""

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    def add_error(self, error: Exception, context: str, **kwargs):
        """Add an error with context"""
        self.errors.append({
            'error': str(error),
            'type': type(error).__name__,
            'context': context,
            'details': kwargs,
            'traceback': traceback.format_exc()
        })
        log_error_with_context(error, context, **kwargs)

    def has_errors(self) -> bool:
        """Check if any errors were collected"""
        return len(self.errors) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of collected errors"""
        if not self.errors:
            return {'total': 0, 'by_type': {}, 'by_context': {}}

        by_type = {}
        by_context = {}

        for error in self.errors:
            error_type = error['type']
            context = error['context']

            by_type[error_type] = by_type.get(error_type, 0) + 1
            by_context[context] = by_context.get(context, 0) + 1

        return {
            'total': len(self.errors),
            'by_type': by_type,
            'by_context': by_context
        }

    def log_summary(self):
        """Log error summary"""
        if not self.has_errors():
            logger.debug("No errors collected")
            return

        summary = self.get_error_summary()
        logger.warning(f"Collected {summary['total']} errors")

        for error_type, count in summary['by_type'].items():
            logger.warning(f"  {error_type}: {count}")

    def clear(self):
        """Clear all collected errors"""
        self.errors.clear()
