"""
HTTP client used by the crawl workers.

One GET per call with separate connect and read timeouts. Failed requests are
reported, never retried.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from site_crawler.utils.logging import get_logger
from site_crawler.utils.errors import FetchError


logger = get_logger(__name__)

DEFAULT_USER_AGENT = "site-crawler/1.0"


@dataclass
class FetchResult:
    """Raw HTTP outcome for one URL."""
    url: str
    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class HTTPClient:
    """Thin wrapper around a shared requests session."""

    def __init__(self,
                 connect_timeout: float = 3.0,
                 read_timeout: float = 30.0,
                 user_agent: str = DEFAULT_USER_AGENT,
                 pool_size: int = 10):
        """
        Initialize HTTP client.

        Args:
            connect_timeout: Seconds to wait for the TCP/TLS connection
            read_timeout: Seconds to wait between bytes of the response
            user_agent: User-Agent header sent with every request
            pool_size: Connection pool size, normally the worker count
        """
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.user_agent = user_agent
        self.session = self._create_session(pool_size)

    def _create_session(self, pool_size: int) -> requests.Session:
        """Create requests session without automatic retries."""
        session = requests.Session()
        session.headers.update({"User-Agent": self.user_agent})

        adapter = HTTPAdapter(
            pool_connections=pool_size,
            pool_maxsize=pool_size,
            max_retries=0
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """
        Perform a GET request.

        Any status code is returned as-is; only transport failures raise.

        Args:
            url: URL to request
            headers: Additional headers

        Returns:
            FetchResult with status code and decoded body

        Raises:
            FetchError: If the request could not be completed
        """
        logger.debug("GET %s", url)
        try:
            response = self.session.get(
                url,
                headers=headers,
                timeout=(self.connect_timeout, self.read_timeout),
                allow_redirects=True
            )
        except requests.RequestException as e:
            raise FetchError(
                f"Failed to retrieve {url}: {e}",
                {"url": url, "exception": type(e).__name__}
            ) from e

        body = response.text if response.status_code == 200 else ""
        return FetchResult(url=url, status_code=response.status_code, body=body)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
