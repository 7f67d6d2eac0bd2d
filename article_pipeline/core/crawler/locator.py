"""Discovery of the oldest article URLs on a paginated blog listing."""

from typing import Dict, List, Optional
from urllib.parse import urljoin
from uuid import uuid4

import structlog
from bs4 import BeautifulSoup

from article_pipeline.core.crawler.fetcher import HtmlFetcher
from article_pipeline.core.crawler.selectors import (
    PAGINATION_SELECTORS,
    first_match,
    link_selectors,
    links_from_markup,
    max_page_from_markup,
)
from article_pipeline.shared.config import LinkSelectionPolicy, Settings
from article_pipeline.shared.exceptions import ExtractionError

logger = structlog.get_logger(__name__)


def listing_page_url(listing_root_url: str, page: int) -> str:
    """URL of a listing page; page 1 is the listing root itself."""
    if page <= 1:
        return listing_root_url
    return f"{listing_root_url.rstrip('/')}/page/{page}/"


class PageLocator:
    """Walks a listing backwards from its last page collecting article URLs.

    A fetch failure yields no links for that page and the walk continues;
    `locate_batch` never raises.
    """

    def __init__(self, settings: Settings, fetcher: Optional[HtmlFetcher] = None):
        self.settings = settings
        self.fetcher = fetcher or HtmlFetcher(settings)
        self._link_selectors = link_selectors(settings.ARTICLE_PATH_SEGMENT)

    def find_last_page(self, html: str) -> int:
        """Estimate the highest page index from listing markup.

        The maximum across all pagination selectors is used; raw markup is
        scanned only when none of them matched. Always >= 1.
        """
        soup = BeautifulSoup(html, "lxml")
        numbers = [n for n in (selector(soup) for selector in PAGINATION_SELECTORS) if n]
        highest = max(numbers) if numbers else max_page_from_markup(html)
        return max(1, highest or 1)

    def extract_links(self, html: str, page_url: str, listing_root_url: Optional[str] = None) -> List[str]:
        """Absolute, de-duplicated article URLs in listing order."""
        soup = BeautifulSoup(html, "lxml")
        hrefs = first_match(self._link_selectors, soup)
        if not hrefs:
            hrefs = links_from_markup(html, self.settings.ARTICLE_PATH_SEGMENT)

        root = (listing_root_url or self.settings.LISTING_ROOT_URL).rstrip("/")
        seen = set()
        links = []
        for href in hrefs:
            url = urljoin(page_url, href)
            if url.rstrip("/") in (root, page_url.rstrip("/")):
                continue
            if self.settings.ARTICLE_PATH_SEGMENT not in url or url in seen:
                continue
            seen.add(url)
            links.append(url)
        return links

    def locate_batch(
        self,
        listing_root_url: Optional[str] = None,
        batch_size: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> List[str]:
        """Collect up to `batch_size` unique article URLs, oldest pages first.

        Returns:
            Article URLs, possibly fewer than requested, or [] on total failure
        """
        listing_root_url = listing_root_url or self.settings.LISTING_ROOT_URL
        if batch_size is None:
            batch_size = self.settings.BATCH_SIZE
        correlation_id = correlation_id or str(uuid4())
        if batch_size < 1:
            return []

        root_html = self._fetch_listing(listing_root_url, correlation_id)
        if root_html is None:
            logger.warning(
                "Listing root unavailable, no articles located",
                correlation_id=correlation_id,
                url=listing_root_url,
            )
            return []

        last_page = self.find_last_page(root_html)
        logger.info(
            "Walking listing pages",
            correlation_id=correlation_id,
            url=listing_root_url,
            last_page=last_page,
            batch_size=batch_size,
        )

        pages: Dict[int, Optional[str]] = {1: root_html}
        collected: List[str] = []

        for page in range(last_page, 0, -1):
            needed = batch_size - len(collected)
            if needed <= 0:
                break

            page_url = listing_page_url(listing_root_url, page)
            html = pages.get(page) or self._fetch_listing(page_url, correlation_id, page=page)
            if html is None:
                continue

            fresh = [url for url in self.extract_links(html, page_url, listing_root_url) if url not in collected]
            if self.settings.LINK_SELECTION_POLICY == LinkSelectionPolicy.HEAD:
                chosen = fresh[:needed]
            else:
                chosen = fresh[-needed:]
            collected.extend(chosen)

            logger.info(
                "Collected listing links",
                correlation_id=correlation_id,
                page=page,
                found=len(fresh),
                taken=len(chosen),
                total=len(collected),
            )

        if not collected:
            logger.warning("No article links found on listing", correlation_id=correlation_id, url=listing_root_url)
        return collected

    def _fetch_listing(self, url: str, correlation_id: str, page: int = 1) -> Optional[str]:
        try:
            return self.fetcher.fetch(url, timeout=self.settings.LISTING_TIMEOUT)
        except ExtractionError as e:
            logger.warning(
                "Listing page fetch failed",
                correlation_id=correlation_id,
                url=url,
                page=page,
                error_code=e.code.value,
                error=e.message,
            )
            return None
