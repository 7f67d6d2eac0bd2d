"""Reference search by scraping the DuckDuckGo HTML results page."""

from typing import Callable, List, Optional
from urllib.parse import parse_qs, quote_plus, unquote, urlparse
from uuid import uuid4

import cloudscraper
import requests
import structlog
from bs4 import BeautifulSoup

from article_pipeline.core.crawler.fetcher import HtmlFetcher
from article_pipeline.core.search.base import ReferenceSearchProvider
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import ExtractionError

logger = structlog.get_logger(__name__)

DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/?q={query}"


def normalize_result_href(href: Optional[str]) -> Optional[str]:
    """Unwrap DuckDuckGo redirect links and make bare URLs absolute."""
    if not href:
        return None
    href = href.strip()

    if "uddg=" in href:
        redirect = parse_qs(urlparse(href).query).get("uddg", [None])[0]
        if not redirect:
            return None
        href = unquote(redirect)

    if href.startswith("//"):
        return "https:" + href
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("/") or "." not in href.split("/")[0]:
        return None
    return "https://" + href


def _css_hrefs(css: str) -> Callable[[BeautifulSoup], List[str]]:
    def select(soup: BeautifulSoup) -> List[str]:
        return [node.get("href") for node in soup.select(css) if node.get("href")]
    select.__name__ = f"results[{css}]"
    return select


def first_link_per_result(soup: BeautifulSoup) -> List[str]:
    hrefs = []
    for result in soup.select(".result"):
        link = result.select_one("a[href]")
        if link is not None:
            hrefs.append(link.get("href"))
    return hrefs


RESULT_SELECTORS = (
    _css_hrefs(".result__a"),
    _css_hrefs("a.result__a"),
    _css_hrefs(".web-result a"),
    _css_hrefs(".result a"),
    first_link_per_result,
)


def create_search_session(settings: Settings) -> requests.Session:
    """CloudScraper session when enabled, otherwise a plain requests session."""
    if settings.CLOUDSCRAPER_ENABLED:
        return cloudscraper.create_scraper(
            browser={'browser': 'chrome', 'platform': 'windows', 'desktop': True},
            delay=settings.CLOUDSCRAPER_DELAY
        )
    return requests.Session()


class DuckDuckGoSearchProvider(ReferenceSearchProvider):
    """Scraped fallback that needs no credentials.

    Results come from the first selector that produces at least one
    qualifying URL; selectors are never merged.
    """

    name = "duckduckgo"
    accept_date_paths = True

    def __init__(self, settings: Settings, fetcher: Optional[HtmlFetcher] = None):
        super().__init__(settings)
        self.fetcher = fetcher or HtmlFetcher(settings, session=create_search_session(settings))

    def search(self, query: str, max_results: int = 2) -> List[str]:
        correlation_id = str(uuid4())
        url = DUCKDUCKGO_HTML_URL.format(query=quote_plus(query))

        try:
            html = self.fetcher.fetch(url, timeout=self.settings.REQUEST_TIMEOUT)
        except ExtractionError as e:
            logger.warning(
                "Reference search failed",
                correlation_id=correlation_id,
                provider=self.name,
                query=query,
                error_code=e.code.value,
                error=e.message,
            )
            return []

        results = self.parse_results(html, max_results)
        logger.info(
            "Reference search completed",
            correlation_id=correlation_id,
            provider=self.name,
            query=query,
            selected=len(results),
        )
        return results

    def parse_results(self, html: str, max_results: int = 2) -> List[str]:
        soup = BeautifulSoup(html, "lxml")
        for selector in RESULT_SELECTORS:
            urls = [normalize_result_href(href) for href in selector(soup)]
            results = self.select_candidates(urls, max_results)
            if results:
                return results
        return []
