"""
Crawl coordinator.

Owns the frontier and the visited set for one seed URL, feeds the worker pool,
detects drain and writes the checkpoint exactly once.
"""

import threading
from datetime import datetime
from typing import Callable, Optional

from site_crawler.utils.logging import get_logger
from site_crawler.utils.errors import FetchError, CorruptStateError, PersistError
from site_crawler.utils.urls import root_origin, state_key
from site_crawler.crawlers.http_client import HTTPClient, FetchResult
from site_crawler.crawlers.parser import extract_links, extract_text
from site_crawler.services.state_manager import StateStore, CrawlSnapshot
from .models import ConcurrentConfig, CancellationToken, CrawlState, CrawlResult, PageResult
from .thread_safe import FrontierQueue, VisitedSet, ThreadSafeCounter
from .thread_pool import WorkerPool


logger = get_logger(__name__)

FetchFunction = Callable[[str], FetchResult]
PageCallback = Callable[[PageResult], None]


class CrawlCoordinator:
    """
    Breadth-first crawl of one site.

    Lifecycle: SEEDING -> RUNNING -> DRAINING -> CHECKPOINTED. The checkpoint
    runs from ``finally`` so it also happens after cancellation or a fault in
    the dispatch loop.
    """

    def __init__(self,
                 seed_url: str,
                 config: Optional[ConcurrentConfig] = None,
                 state_store: Optional[StateStore] = None,
                 fetch: Optional[FetchFunction] = None,
                 on_page: Optional[PageCallback] = None,
                 cancel_token: Optional[CancellationToken] = None,
                 restart: bool = False,
                 user_agent: Optional[str] = None):
        """
        Initialize the crawl session.

        Args:
            seed_url: Absolute URL the crawl starts from
            config: Engine configuration (worker count, timeouts)
            state_store: Snapshot storage, defaults to the current directory
            fetch: Page fetch function, defaults to an HTTPClient
            on_page: Callback receiving each successfully processed page
            cancel_token: Stop signal observed between dispatch cycles
            restart: Discard any saved state before seeding
            user_agent: User-Agent for the default HTTPClient

        Raises:
            MalformedURLError: If the seed URL has no scheme or host
        """
        self.seed_url = seed_url
        self.origin = root_origin(seed_url)
        self.state_key = state_key(seed_url)

        self.config = config or ConcurrentConfig()
        self.state_store = state_store or StateStore()
        self.cancel_token = cancel_token or CancellationToken()
        self.on_page = on_page
        self.restart = restart

        self._http_client: Optional[HTTPClient] = None
        if fetch is None:
            client_kwargs = {
                "connect_timeout": self.config.connect_timeout,
                "read_timeout": self.config.read_timeout,
                "pool_size": self.config.max_workers
            }
            if user_agent:
                client_kwargs["user_agent"] = user_agent
            self._http_client = HTTPClient(**client_kwargs)
            fetch = self._http_client.fetch
        self._fetch = fetch

        self.frontier = FrontierQueue()
        self.visited = VisitedSet()
        self._discovered = VisitedSet()
        self._pool: Optional[WorkerPool] = None

        self.state = CrawlState.SEEDING
        self._checkpoint_lock = threading.Lock()
        self._checkpointed = False
        self._checkpoint_saved = False

        self._pages_claimed = ThreadSafeCounter()
        self._pages_fetched = ThreadSafeCounter()
        self._pages_failed = ThreadSafeCounter()
        self._links_enqueued = ThreadSafeCounter()

        self._started_at: Optional[datetime] = None
        self._completed_at: Optional[datetime] = None

        self.cancel_token.add_callback(self.frontier.wake_all)

    def run(self) -> CrawlResult:
        """
        Crawl until the frontier drains or the token is cancelled.

        Returns:
            Summary of the session
        """
        self._started_at = datetime.now()
        logger.info(f"Starting crawl of {self.seed_url} with {self.config.max_workers} workers")

        try:
            self._seed()
            self._pool = WorkerPool(self.config.max_workers, on_task_done=self.frontier.wake_all)
            self.state = CrawlState.RUNNING
            self._dispatch_loop()
            self.state = CrawlState.DRAINING
            self._drain()
        finally:
            self.checkpoint()
            self._completed_at = datetime.now()

        result = self._build_result()
        logger.info(
            f"Crawl finished: {result.pages_fetched} fetched, {result.pages_failed} failed, "
            f"{result.visited_total} visited, {result.pending_total} pending"
        )
        return result

    def _seed(self) -> None:
        """Load the previous snapshot or start from the seed URL."""
        if self.restart:
            try:
                self.state_store.clear(self.state_key)
            except OSError as e:
                logger.warning(f"Could not remove previous state: {e}")

        snapshot = None
        try:
            snapshot = self.state_store.load(self.state_key)
        except CorruptStateError as e:
            logger.warning(f"{e.message}; starting from seed")

        if snapshot is None:
            self._discovered.try_claim(self.seed_url)
            self.frontier.push(self.seed_url)
            return

        self.visited.update(snapshot.visited_pages)
        pending = snapshot.resume_queue()
        self._discovered.update(pending)
        self.frontier.extend(pending)
        logger.info(f"Resuming crawl: {len(self.visited)} visited, {len(pending)} queued")

    def _dispatch_loop(self) -> None:
        while not self.cancel_token.is_cancelled():
            # read before the drain check so a task finishing in between
            # still interrupts the take below
            generation = self.frontier.generation()
            if self._pool.in_flight == 0 and self.frontier.empty():
                logger.debug("Frontier drained")
                return

            url = self.frontier.take_with_timeout(self.config.queue_timeout, since=generation)
            if url is None:
                continue

            if self.cancel_token.is_cancelled():
                # unclaimed, so it belongs in the checkpoint
                self.frontier.push(url)
                break

            if not self.visited.try_claim(url):
                continue

            self._pages_claimed.increment()
            logger.info(f"Scraping URL: {url}")
            self._pool.submit(self._process_page, url)

        logger.info("Crawl cancelled, no further pages will be dispatched")

    def _drain(self) -> None:
        finished = self._pool.wait_idle(
            poll_interval=self.config.drain_poll_interval,
            abort=self.cancel_token.is_forced
        )
        if not finished:
            logger.warning(f"Abandoning {self._pool.in_flight} in-flight page(s)")

    def _process_page(self, url: str) -> None:
        """Fetch one claimed URL, enqueue its new links and report its text."""
        try:
            response = self._fetch(url)
        except FetchError as e:
            self._pages_failed.increment()
            logger.warning(e.message)
            return

        if response.status_code != 200:
            self._pages_failed.increment()
            logger.warning(f"Failed to retrieve {url}: HTTP {response.status_code}")
            return

        self._pages_fetched.increment()
        links = extract_links(response.body, url, self.origin)
        enqueued = []
        for link in sorted(links):
            if link in self.visited:
                continue
            if self._discovered.try_claim(link):
                self.frontier.push(link)
                enqueued.append(link)
                logger.info(f"Discovered link: {link}")
        self._links_enqueued.increment(len(enqueued))

        if self.on_page is not None:
            self.on_page(PageResult(
                url=url,
                status_code=response.status_code,
                text=extract_text(response.body),
                links_found=len(links),
                links_enqueued=enqueued,
                worker=threading.current_thread().name
            ))

    def checkpoint(self) -> bool:
        """
        Persist visited pages and the frontier, then release the pool.

        Safe to call more than once; only the first call does anything.

        Returns:
            True if the snapshot was written by this session
        """
        with self._checkpoint_lock:
            if self._checkpointed:
                return self._checkpoint_saved
            self._checkpointed = True

            forced = self.cancel_token.is_forced()
            if self._pool is not None and not forced:
                self._pool.shutdown(wait=True)

            if self.state == CrawlState.SEEDING:
                logger.error("Crawl failed before seeding completed, previous state left untouched")
            else:
                snapshot = CrawlSnapshot.capture(self.visited.snapshot(), self.frontier.snapshot())
                try:
                    path = self.state_store.save(self.state_key, snapshot)
                    self._checkpoint_saved = True
                    logger.info(f"Crawler stopped and state saved to {path}")
                except PersistError as e:
                    logger.error(e.message)

            if self._pool is not None and forced:
                self._pool.shutdown(wait=False)
            if self._http_client is not None:
                self._http_client.close()

            self.state = CrawlState.CHECKPOINTED
            return self._checkpoint_saved

    def _build_result(self) -> CrawlResult:
        visited = self.visited.snapshot()
        return CrawlResult(
            seed_url=self.seed_url,
            state=self.state,
            pages_claimed=self._pages_claimed.get_value(),
            pages_fetched=self._pages_fetched.get_value(),
            pages_failed=self._pages_failed.get_value(),
            links_enqueued=self._links_enqueued.get_value(),
            visited_total=len(visited),
            pending_total=self.frontier.qsize(),
            interrupted=self.cancel_token.is_cancelled(),
            checkpoint_saved=self._checkpoint_saved,
            started_at=self._started_at or datetime.now(),
            completed_at=self._completed_at,
            visited_pages=sorted(visited)
        )

    def get_status(self) -> dict:
        """
        Get a point-in-time view of the session.

        Returns:
            Dictionary with crawl status
        """
        return {
            "seed_url": self.seed_url,
            "origin": self.origin,
            "state": self.state.value,
            "visited": len(self.visited),
            "frontier": self.frontier.get_stats(),
            "pool": self._pool.get_stats() if self._pool else None,
            "pages_fetched": self._pages_fetched.get_value(),
            "pages_failed": self._pages_failed.get_value()
        }
