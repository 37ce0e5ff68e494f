"""
URL helpers: crawl origin, state file naming and same-site link resolution.

URL identity is textual. Nothing here strips trailing slashes, query strings
or fragments.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from site_crawler.utils.errors import MalformedURLError


STATE_FILE_SUFFIX = "_crawler_state.json"
CRAWL_SCHEME = "https"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def _split_absolute(url: str):
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        raise MalformedURLError(
            f"Not an absolute URL: {url!r}",
            {"url": url}
        )
    return parsed


def _host_as_written(netloc: str) -> str:
    # urlparse().hostname lowercases, so strip userinfo and port by hand
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[:host.find("]") + 1]
    return host.partition(":")[0]


def root_origin(url: str) -> str:
    """
    Return ``scheme://host[:port]`` of an absolute URL.

    Raises:
        MalformedURLError: If the URL has no scheme or host
    """
    parsed = _split_absolute(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def state_key(url: str) -> str:
    """
    Derive a filesystem-safe key from the URL host.

    The top-level label is dropped and the remaining labels are joined with
    underscores, so ``https://www.example.com/`` gives ``www_example``.
    The host keeps the case it was written in.
    """
    host = _host_as_written(_split_absolute(url).netloc)
    labels = [label for label in host.split(".") if label]
    if len(labels) > 1:
        labels = labels[:-1]
    return _UNSAFE_CHARS.sub("-", "_".join(labels))


def state_file_name(url: str) -> str:
    """Name of the snapshot file for a crawl seeded at ``url``."""
    return state_key(url) + STATE_FILE_SUFFIX


def resolve_link(href: str, base_url: str, origin: str) -> Optional[str]:
    """
    Turn an href into an absolute URL.

    Root-relative paths resolve against the crawl origin. Scheme-relative
    hrefs (``//host/path``) are not followed and give None.
    """
    href = href.strip()
    if not href or href.startswith("//"):
        return None
    if href.startswith("/"):
        return origin + href
    return urljoin(base_url, href)


def is_crawlable(url: str, origin: str) -> bool:
    """Check that a URL uses https and lives under the crawl origin."""
    if not url.startswith(CRAWL_SCHEME + "://"):
        return False
    if not url.startswith(origin):
        return False
    rest = url[len(origin):]
    return rest == "" or rest[0] in "/?#"
