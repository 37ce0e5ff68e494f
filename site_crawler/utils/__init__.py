"""
Shared utilities: errors, logging and URL helpers.
"""

from .errors import (
    SiteCrawlerError,
    MalformedURLError,
    FetchError,
    CorruptStateError,
    PersistError,
    ConfigurationError,
    ValidationError
)
from .logging import setup_logging, get_logger
from .urls import root_origin, state_key, state_file_name, resolve_link, is_crawlable

__all__ = [
    'SiteCrawlerError',
    'MalformedURLError',
    'FetchError',
    'CorruptStateError',
    'PersistError',
    'ConfigurationError',
    'ValidationError',
    'setup_logging',
    'get_logger',
    'root_origin',
    'state_key',
    'state_file_name',
    'resolve_link',
    'is_crawlable'
]
