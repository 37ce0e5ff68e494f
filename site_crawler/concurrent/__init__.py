"""
Concurrent crawl engine.

Main Components:
- CrawlCoordinator: seeds, dispatches, drains and checkpoints a crawl
- WorkerPool: fixed-size thread pool with in-flight tracking
- FrontierQueue: pending URLs with a blocking timed take
- VisitedSet: grow-only set with an atomic claim
"""

from .models import (
    ConcurrentConfig,
    CancellationToken,
    CrawlState,
    PageResult,
    CrawlResult
)

from .thread_safe import (
    ThreadSafeCounter,
    FrontierQueue,
    VisitedSet
)

from .thread_pool import WorkerPool
from .controller import CrawlCoordinator

__all__ = [
    # Core models
    'ConcurrentConfig',
    'CancellationToken',
    'CrawlState',
    'PageResult',
    'CrawlResult',

    # Thread-safe utilities
    'ThreadSafeCounter',
    'FrontierQueue',
    'VisitedSet',

    # Main components
    'WorkerPool',
    'CrawlCoordinator'
]
