"""Article extraction from heterogeneous blog HTML.

The ContentExtractor fetches a page and runs three selector cascades over it
(title, body, publish date). Extraction is best effort: any fetch failure or
a page that yields too little text returns None instead of raising, so batch
callers can simply skip the URL.

Example:
    ```python
    from article_pipeline.shared.config import get_settings
    from article_pipeline.core.crawler.extractor import ContentExtractor

    extractor = ContentExtractor(settings=get_settings())
    result = extractor.extract("https://example.com/blogs/some-post/")

    if result:
        print(result.title)
        print(result.body_text[:200])
    ```
"""

from typing import Optional

import structlog
from bs4 import BeautifulSoup

from article_pipeline.core.crawler.fetcher import HtmlFetcher
from article_pipeline.core.crawler.selectors import (
    BODY_SELECTORS,
    DATE_SELECTORS,
    TITLE_SELECTORS,
    first_match,
    whole_body,
)
from article_pipeline.core.models import ExtractionResult
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import ExtractionError, ExtractionParsingError

logger = structlog.get_logger(__name__)


class ContentExtractor:
    """Turns an article URL into an ExtractionResult or None."""

    def __init__(self, settings: Settings, fetcher: Optional[HtmlFetcher] = None):
        """Initialize the extractor.

        Args:
            settings: Application settings instance
            fetcher: HTML fetcher, a default requests-backed one is created if omitted
        """
        self.settings = settings
        self.fetcher = fetcher or HtmlFetcher(settings)

    def extract(self, url: str, correlation_id: Optional[str] = None) -> Optional[ExtractionResult]:
        """Fetch a page and extract its title, body and publish date.

        Returns:
            ExtractionResult, or None on fetch failure or insufficient content
        """
        try:
            html = self.fetcher.fetch(url, timeout=self.settings.REQUEST_TIMEOUT)
        except ExtractionError as e:
            logger.warning(
                "Article fetch failed",
                correlation_id=correlation_id,
                url=url,
                error_code=e.code.value,
                error=e.message,
            )
            return None

        try:
            return self.parse(html, url)
        except ExtractionParsingError as e:
            logger.warning(
                "Insufficient article content",
                correlation_id=correlation_id,
                url=url,
                **e.details,
            )
            return None

    def extract_from_html(self, html: str, url: str) -> Optional[ExtractionResult]:
        """Run the selector cascades on already downloaded markup."""
        try:
            return self.parse(html, url)
        except ExtractionParsingError as e:
            logger.info("Insufficient article content", url=url, **e.details)
            return None

    def parse(self, html: str, url: str) -> ExtractionResult:
        """Run the selector cascades, raising when the page is too thin.

        Raises:
            ExtractionParsingError: Title or body below the configured thresholds
        """
        soup = BeautifulSoup(html, "lxml")

        title = self._extract_title(soup)
        if title is None or len(title) < self.settings.TITLE_MIN_LENGTH:
            raise ExtractionParsingError(url, details={"reason": "title", "title": title})

        body_text = self._extract_body(soup)
        if len(body_text) < self.settings.CONTENT_MIN_LENGTH:
            raise ExtractionParsingError(
                url, details={"reason": "body", "body_length": len(body_text)}
            )

        return ExtractionResult(
            url=url,
            title=title,
            body_text=body_text,
            published_at=first_match(DATE_SELECTORS, soup),
        )

    def _extract_title(self, soup: BeautifulSoup) -> Optional[str]:
        # A descriptive candidate wins over a more specific but short one
        preferred = self.settings.TITLE_PREFERRED_LENGTH
        title = first_match(TITLE_SELECTORS, soup, accept=lambda t: len(t) > preferred)
        return title or first_match(TITLE_SELECTORS, soup)

    def _extract_body(self, soup: BeautifulSoup) -> str:
        minimum = self.settings.CONTENT_SELECTOR_MIN_LENGTH
        body = first_match(BODY_SELECTORS, soup, accept=lambda text: len(text) > minimum)
        if body is None:
            body = whole_body(soup) or ""
        return body
