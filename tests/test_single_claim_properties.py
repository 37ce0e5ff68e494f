"""
Property-based tests for the single-claim guarantee.

**Feature: site-crawler, Property 1: Single claim**
"""

import threading
from collections import Counter

from hypothesis import given, strategies as st, settings

from site_crawler.concurrent.thread_safe import VisitedSet, FrontierQueue


url_strategy = st.builds(
    lambda path: f"https://site.com/{path}",
    st.text(alphabet="abcdefghij/-", max_size=8)
)


class TestSingleClaim:
    """A URL is claimed by exactly one caller, however many race for it."""

    @given(
        urls=st.lists(url_strategy, min_size=1, max_size=30),
        workers=st.integers(min_value=2, max_value=12)
    )
    @settings(max_examples=25)
    def test_each_url_claimed_exactly_once(self, urls, workers):
        """
        **Feature: site-crawler, Property 1: Single claim**

        Every worker tries to claim every URL; each distinct URL must be won
        exactly once across all workers.
        """
        visited = VisitedSet()
        barrier = threading.Barrier(workers)
        wins = Counter()
        wins_lock = threading.Lock()

        def race():
            barrier.wait()
            mine = [url for url in urls if visited.try_claim(url)]
            with wins_lock:
                wins.update(mine)

        threads = [threading.Thread(target=race) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert set(wins) == set(urls)
        assert all(count == 1 for count in wins.values())
        assert visited.snapshot() == set(urls)

    @given(urls=st.lists(url_strategy, min_size=1, max_size=40))
    @settings(max_examples=25)
    def test_dequeue_claim_dispatches_duplicates_once(self, urls):
        """
        **Feature: site-crawler, Property 1: Single claim**

        A URL that entered the frontier several times is dispatched once when
        consumers claim at dequeue time.
        """
        frontier = FrontierQueue(urls)
        visited = VisitedSet()
        dispatched = []
        lock = threading.Lock()

        def consume():
            while True:
                url = frontier.take_with_timeout(0.05)
                if url is None:
                    return
                if visited.try_claim(url):
                    with lock:
                        dispatched.append(url)

        threads = [threading.Thread(target=consume) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(dispatched) == sorted(set(urls))
        assert frontier.empty()

    @given(claimed=st.sets(url_strategy, max_size=20), extra=url_strategy)
    def test_membership_never_shrinks(self, claimed, extra):
        """
        **Feature: site-crawler, Property 1: Single claim**

        Claims are permanent: re-claiming anything already present fails.
        """
        visited = VisitedSet(claimed)
        before = visited.snapshot()

        visited.try_claim(extra)

        assert before <= visited.snapshot()
        assert all(not visited.try_claim(url) for url in before)
