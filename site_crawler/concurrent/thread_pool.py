"""
Fixed-size worker pool for page processing.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Callable, Optional, Set

from site_crawler.utils.logging import get_logger
from site_crawler.utils.errors import handle_error, SiteCrawlerError
from .thread_safe import ThreadSafeCounter


logger = get_logger(__name__)


class WorkerPool:
    """
    Runs submitted tasks on ``max_workers`` threads and tracks how many are
    still in flight.

    ``on_task_done`` is called after every task, once the in-flight count has
    already been decremented.
    """

    def __init__(self, max_workers: int, on_task_done: Optional[Callable[[], None]] = None):
        """
        Initialize worker pool.

        Args:
            max_workers: Number of worker threads
            on_task_done: Optional hook run after each task finishes
        """
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="CrawlerWorker"
        )
        self._on_task_done = on_task_done

        self._in_flight = ThreadSafeCounter()
        self._submitted = ThreadSafeCounter()
        self._completed = ThreadSafeCounter()
        self._exceptions = ThreadSafeCounter()

        self._idle = threading.Condition()
        self._futures: Set[Future] = set()
        self._futures_lock = threading.Lock()
        self._accepting = True

        logger.debug(f"WorkerPool initialized with {max_workers} workers")

    @property
    def in_flight(self) -> int:
        return self._in_flight.get_value()

    def submit(self, task: Callable[..., None], *args) -> Future:
        """
        Schedule a task.

        Raises:
            SiteCrawlerError: If the pool no longer accepts work
        """
        if not self._accepting:
            raise SiteCrawlerError("WorkerPool is not accepting new tasks")

        self._in_flight.increment()
        self._submitted.increment()
        try:
            future = self._executor.submit(self._run, task, *args)
        except RuntimeError as e:
            self._task_finished()
            raise SiteCrawlerError(f"Failed to submit task: {e}")

        with self._futures_lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    def _run(self, task: Callable[..., None], *args) -> None:
        try:
            task(*args)
        except Exception as e:
            self._exceptions.increment()
            handle_error(
                e, logger,
                {"worker": threading.current_thread().name},
                reraise=False
            )
        finally:
            self._completed.increment()
            self._task_finished()

    def _task_finished(self) -> None:
        remaining = self._in_flight.decrement()
        if remaining == 0:
            with self._idle:
                self._idle.notify_all()
        if self._on_task_done is not None:
            self._on_task_done()

    def _forget(self, future: Future) -> None:
        with self._futures_lock:
            self._futures.discard(future)

    def wait_idle(self,
                  poll_interval: float = 0.5,
                  abort: Optional[Callable[[], bool]] = None) -> bool:
        """
        Block until no task is in flight.

        Args:
            poll_interval: How often ``abort`` is consulted
            abort: Optional predicate; returning True stops the wait

        Returns:
            True if the pool went idle, False if the wait was aborted
        """
        with self._idle:
            while self.in_flight > 0:
                if abort is not None and abort():
                    return False
                self._idle.wait(poll_interval)
        return True

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting work and release the threads.

        Args:
            wait: Wait for running tasks; when False, queued tasks that have
                not started are cancelled
        """
        self._accepting = False
        if not wait:
            with self._futures_lock:
                pending = list(self._futures)
            for future in pending:
                if future.cancel():
                    # cancelled before it ran, so _run never decrements
                    self._task_finished()
        self._executor.shutdown(wait=wait)
        logger.debug("WorkerPool shut down")

    def get_stats(self) -> dict:
        """
        Get pool statistics.

        Returns:
            Dictionary with pool statistics
        """
        return {
            "max_workers": self.max_workers,
            "in_flight": self.in_flight,
            "submitted": self._submitted.get_value(),
            "completed": self._completed.get_value(),
            "exceptions": self._exceptions.get_value()
        }
