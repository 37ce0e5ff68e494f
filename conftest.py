"""
Pytest configuration and fixtures for site crawler tests.
"""

import pytest
from hypothesis import settings, Verbosity
import os

from site_crawler.crawlers.http_client import FetchResult
from site_crawler.utils.errors import FetchError

# Configure Hypothesis for faster test runs
settings.register_profile("fast", max_examples=10, deadline=None, verbosity=Verbosity.quiet)
settings.register_profile("thorough", max_examples=100, deadline=None, verbosity=Verbosity.normal)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "fast"))


class FakeSite:
    """In-memory site used instead of the network; records every fetch."""

    def __init__(self, pages, failures=None, statuses=None):
        self.pages = dict(pages)
        self.failures = set(failures or ())
        self.statuses = dict(statuses or {})
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        if url in self.failures:
            raise FetchError(f"Failed to retrieve {url}: connection refused", {"url": url})
        if url in self.statuses:
            return FetchResult(url=url, status_code=self.statuses[url])
        if url not in self.pages:
            return FetchResult(url=url, status_code=404)
        return FetchResult(url=url, status_code=200, body=self.pages[url])


def page(*hrefs, text="Some text"):
    """Build a minimal HTML page linking to ``hrefs``."""
    anchors = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body><p>{text}</p>{anchors}</body></html>"


@pytest.fixture
def state_dir(tmp_path):
    """Temporary directory for crawl state files."""
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def chain_site():
    """Linear three-page site A -> B -> C."""
    return FakeSite({
        "https://site.com/": page("/b"),
        "https://site.com/b": page("https://site.com/c"),
        "https://site.com/c": page(),
    })
