"""
Custom exception classes and error handling utilities.
"""

from typing import Optional, Dict, Any
import traceback


class SiteCrawlerError(Exception):
    """Base exception for all site crawler errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MalformedURLError(SiteCrawlerError):
    """Exception raised when a URL has no scheme or host."""
    pass


class FetchError(SiteCrawlerError):
    """Exception raised when a page cannot be retrieved."""
    pass


class CorruptStateError(SiteCrawlerError):
    """Exception raised when a persisted crawl snapshot cannot be read."""
    pass


class PersistError(SiteCrawlerError):
    """Exception raised when a crawl snapshot cannot be written."""
    pass


class ConfigurationError(SiteCrawlerError):
    """Exception raised for configuration-related issues."""
    pass


class ValidationError(SiteCrawlerError):
    """Exception raised for invalid engine parameters."""
    pass


def handle_error(
    error: Exception,
    logger,
    context: Optional[Dict[str, Any]] = None,
    reraise: bool = True
) -> None:
    """
    Handle and log errors with context information.

    Args:
        error: The exception that occurred
        logger: Logger instance to use for logging
        context: Additional context information
        reraise: Whether to reraise the exception after logging
    """
    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **(context or {})
    }

    if isinstance(error, SiteCrawlerError):
        error_context.update(error.details)

    logger.error(
        "Error occurred: %s",
        ", ".join(f"{key}={value}" for key, value in error_context.items())
    )
    logger.debug("Traceback: %s", traceback.format_exc())

    if reraise:
        raise error
