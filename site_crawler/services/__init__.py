"""
Service layer components: crawl state persistence.
"""

from .state_manager import StateStore, CrawlSnapshot, SNAPSHOT_SCHEMA

__all__ = [
    'StateStore',
    'CrawlSnapshot',
    'SNAPSHOT_SCHEMA'
]
