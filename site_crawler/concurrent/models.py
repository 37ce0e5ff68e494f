"""
Data models for the concurrent crawl engine.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Callable
from datetime import datetime
from enum import Enum

from site_crawler.utils.errors import ValidationError


class CrawlState(Enum):
    """Crawl session lifecycle."""
    SEEDING = "seeding"
    RUNNING = "running"
    DRAINING = "draining"
    CHECKPOINTED = "checkpointed"


@dataclass
class ConcurrentConfig:
    """Configuration for the crawl engine."""
    max_workers: int = 5
    queue_timeout: float = 60.0
    connect_timeout: float = 3.0
    read_timeout: float = 30.0
    drain_poll_interval: float = 0.5

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ValidationError: If configuration is invalid
        """
        errors = []

        if not (1 <= self.max_workers <= 100):
            errors.append("max_workers must be between 1 and 100")

        if not (0 < self.queue_timeout <= 3600):
            errors.append("queue_timeout must be greater than 0 and at most 3600")

        if not (0 < self.connect_timeout <= 300):
            errors.append("connect_timeout must be greater than 0 and at most 300")

        if not (0 < self.read_timeout <= 600):
            errors.append("read_timeout must be greater than 0 and at most 600")

        if not (0 < self.drain_poll_interval <= 60):
            errors.append("drain_poll_interval must be greater than 0 and at most 60")

        if errors:
            raise ValidationError(
                "Concurrent configuration validation failed",
                {"errors": errors}
            )


class CancellationToken:
    """
    Explicit stop signal handed to the coordinator.

    ``cancel`` asks for a graceful stop: no new dispatch, in-flight pages
    finish, then the checkpoint runs. ``force`` additionally abandons the
    wait for in-flight pages.
    """

    def __init__(self):
        self._cancelled = threading.Event()
        self._forced = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.RLock()

    def cancel(self) -> None:
        self._cancelled.set()
        self._run_callbacks()

    def force(self) -> None:
        self._forced.set()
        self.cancel()

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def is_forced(self) -> bool:
        return self._forced.is_set()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register a callable run on every cancel/force call."""
        with self._lock:
            self._callbacks.append(callback)
        if self.is_cancelled():
            callback()

    def _run_callbacks(self) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()


@dataclass
class PageResult:
    """What a worker reports after processing one page."""
    url: str
    status_code: int
    text: str = ""
    links_found: int = 0
    links_enqueued: List[str] = field(default_factory=list)
    worker: Optional[str] = None


@dataclass
class CrawlResult:
    """Summary of a crawl session."""
    seed_url: str
    state: CrawlState
    pages_claimed: int = 0
    pages_fetched: int = 0
    pages_failed: int = 0
    links_enqueued: int = 0
    visited_total: int = 0
    pending_total: int = 0
    interrupted: bool = False
    checkpoint_saved: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    visited_pages: List[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "seed_url": self.seed_url,
            "state": self.state.value,
            "pages_claimed": self.pages_claimed,
            "pages_fetched": self.pages_fetched,
            "pages_failed": self.pages_failed,
            "links_enqueued": self.links_enqueued,
            "visited_total": self.visited_total,
            "pending_total": self.pending_total,
            "interrupted": self.interrupted,
            "checkpoint_saved": self.checkpoint_saved,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "visited_pages": list(self.visited_pages)
        }
