"""
Thread-safe data structures shared by the coordinator and the worker threads.
"""

import threading
import time
from collections import deque
from typing import Deque, Iterable, List, Optional, Set


class ThreadSafeCounter:
    """Thread-safe counter with atomic operations."""

    def __init__(self, initial_value: int = 0):
        """
        Initialize counter with initial value.

        Args:
            initial_value: Starting value for the counter
        """
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """
        Atomically increment counter and return new value.

        Args:
            amount: Amount to increment by (default: 1)

        Returns:
            New counter value after increment
        """
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        """
        Atomically decrement counter and return new value.

        Args:
            amount: Amount to decrement by (default: 1)

        Returns:
            New counter value after decrement
        """
        with self._lock:
            self._value -= amount
            return self._value

    def get_value(self) -> int:
        """
        Get current counter value.

        Returns:
            Current counter value
        """
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"ThreadSafeCounter(value={self.get_value()})"


class FrontierQueue:
    """
    Unbounded FIFO of URLs waiting to be claimed.

    Many producers push, many consumers block in ``take_with_timeout``.
    ``wake_all`` releases blocked consumers early so the coordinator can
    re-check for completion or cancellation without waiting out the timeout.
    """

    def __init__(self, initial_items: Optional[Iterable[str]] = None):
        """
        Initialize the frontier.

        Args:
            initial_items: Optional URLs to enqueue in order
        """
        self._items: Deque[str] = deque(initial_items or ())
        # reentrant: wake_all() may run from a signal handler on the main thread
        self._cond = threading.Condition(threading.RLock())
        self._wakeups = 0
        self._put_count = len(self._items)
        self._get_count = 0

    def push(self, url: str) -> None:
        """
        Append a URL. Never blocks.

        Args:
            url: URL to enqueue
        """
        with self._cond:
            self._items.append(url)
            self._put_count += 1
            self._cond.notify()

    def extend(self, urls: Iterable[str]) -> None:
        """
        Append several URLs in order.

        Args:
            urls: URLs to enqueue
        """
        with self._cond:
            added = 0
            for url in urls:
                self._items.append(url)
                added += 1
            self._put_count += added
            self._cond.notify(added)

    def generation(self) -> int:
        """Number of ``wake_all`` calls so far."""
        with self._cond:
            return self._wakeups

    def take_with_timeout(self, timeout: float, since: Optional[int] = None) -> Optional[str]:
        """
        Remove and return the oldest URL.

        Blocks until a URL is available, ``timeout`` seconds elapse or
        ``wake_all`` is called. With ``since``, a wake-up that happened after
        that generation was read also ends the wait, even if it came before
        this call.

        Args:
            timeout: Maximum time to wait in seconds
            since: Generation previously read with ``generation()``

        Returns:
            URL, or None on timeout or wake-up
        """
        deadline = time.monotonic() + timeout
        with self._cond:
            generation = self._wakeups if since is None else since
            while not self._items:
                if self._wakeups != generation:
                    return None
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)
            self._get_count += 1
            return self._items.popleft()

    def wake_all(self) -> None:
        """Release every consumer currently blocked in ``take_with_timeout``."""
        with self._cond:
            self._wakeups += 1
            self._cond.notify_all()

    def snapshot(self) -> List[str]:
        """
        Copy of the queued URLs in order, without draining.

        Returns:
            List of pending URLs
        """
        with self._cond:
            return list(self._items)

    def qsize(self) -> int:
        with self._cond:
            return len(self._items)

    def empty(self) -> bool:
        return self.qsize() == 0

    def get_stats(self) -> dict:
        """
        Get queue statistics.

        Returns:
            Dictionary with queue statistics
        """
        with self._cond:
            return {
                "size": len(self._items),
                "put_count": self._put_count,
                "get_count": self._get_count
            }

    def __len__(self) -> int:
        return self.qsize()

    def __repr__(self) -> str:
        return f"FrontierQueue(size={self.qsize()})"


class VisitedSet:
    """
    Grow-only set of claimed URLs.

    ``try_claim`` is the single point deciding which caller owns a URL.
    Nothing is ever removed.
    """

    def __init__(self, initial_items: Optional[Iterable[str]] = None):
        """
        Initialize the set.

        Args:
            initial_items: Optional URLs that are already claimed
        """
        self._set: Set[str] = set(initial_items) if initial_items else set()
        self._lock = threading.Lock()

    def try_claim(self, url: str) -> bool:
        """
        Atomically insert a URL if absent.

        Args:
            url: URL to claim

        Returns:
            True only for the call that inserted the URL
        """
        with self._lock:
            if url in self._set:
                return False
            self._set.add(url)
            return True

    def update(self, urls: Iterable[str]) -> int:
        """
        Claim many URLs at once.

        Args:
            urls: URLs to claim

        Returns:
            Number of URLs that were not already present
        """
        with self._lock:
            old_size = len(self._set)
            self._set.update(urls)
            return len(self._set) - old_size

    def contains(self, url: str) -> bool:
        with self._lock:
            return url in self._set

    def __contains__(self, url: str) -> bool:
        return self.contains(url)

    def snapshot(self) -> Set[str]:
        """
        Copy of the claimed URLs.

        Returns:
            Set of URLs
        """
        with self._lock:
            return set(self._set)

    def __len__(self) -> int:
        with self._lock:
            return len(self._set)

    def __repr__(self) -> str:
        return f"VisitedSet(size={len(self)})"
