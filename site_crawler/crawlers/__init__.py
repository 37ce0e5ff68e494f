"""
Page retrieval and parsing collaborators for the crawl engine.
"""

from .http_client import HTTPClient, FetchResult, DEFAULT_USER_AGENT
from .parser import extract_links, extract_text, extract_hrefs

__all__ = [
    'HTTPClient',
    'FetchResult',
    'DEFAULT_USER_AGENT',
    'extract_links',
    'extract_text',
    'extract_hrefs'
]
