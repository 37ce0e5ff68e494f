"""
HTML parsing: same-site link discovery and paragraph text extraction.
"""

import re
from typing import List, Set

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_crawler.utils.urls import resolve_link, is_crawlable


_URL_PATTERN = re.compile(r"https?://", re.IGNORECASE)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def extract_hrefs(html: str) -> List[str]:
    """Raw href values of every anchor, in document order."""
    hrefs: List[str] = []
    for tag in _soup(html).find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href = tag.get("href")
        if isinstance(href, str):
            hrefs.append(href)
    return hrefs


def extract_links(html: str, base_url: str, origin: str) -> Set[str]:
    """
    Extract crawlable same-site links from a page.

    Root-relative hrefs resolve against ``origin``, other relative hrefs
    against ``base_url``. Only https URLs under ``origin`` are kept.

    Args:
        html: Page markup
        base_url: URL the page was fetched from
        origin: Crawl root origin (``scheme://host``)

    Returns:
        Set of absolute URLs
    """
    links: Set[str] = set()
    for href in extract_hrefs(html):
        url = resolve_link(href, base_url, origin)
        if url is not None and is_crawlable(url, origin):
            links.add(url)
    return links


def extract_text(html: str) -> str:
    """
    Collect paragraph text, skipping paragraphs that mention a URL.

    Each kept paragraph is whitespace-collapsed and written on its own line.
    """
    lines = []
    for para in _soup(html).find_all("p"):
        text = " ".join(para.get_text().split())
        if _URL_PATTERN.search(text):
            continue
        lines.append(text + "\n")
    return "".join(lines)
