"""HTTP page fetching with browser-like headers and typed failures."""

from typing import Optional

import requests
import structlog

from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import (
    ExtractionNetworkError,
    ExtractionTimeoutError,
)

logger = structlog.get_logger(__name__)


def browser_headers(user_agent: str) -> dict:
    return {
        'User-Agent': user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
        'Connection': 'keep-alive',
    }


class HtmlFetcher:
    """Fetches HTML documents and maps transport failures to extraction errors.

    The session is injectable so search providers can hand in a CloudScraper
    session and tests can hand in a mock.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(browser_headers(settings.USER_AGENT))

    def fetch(self, url: str, timeout: Optional[int] = None) -> str:
        """Download a page and return its decoded body.

        Args:
            url: Page URL
            timeout: Seconds before giving up, defaults to REQUEST_TIMEOUT

        Raises:
            ExtractionTimeoutError: The request timed out
            ExtractionNetworkError: Connection failure or non-2xx status
        """
        timeout = timeout or self.settings.REQUEST_TIMEOUT

        try:
            response = self.session.get(url, timeout=timeout)
        except requests.Timeout:
            raise ExtractionTimeoutError(url, timeout)
        except requests.RequestException as e:
            raise ExtractionNetworkError(url, details={"url": url, "error": str(e)})

        if not 200 <= response.status_code < 300:
            raise ExtractionNetworkError(url, status_code=response.status_code)

        logger.debug("Fetched page", url=url, status_code=response.status_code, size=len(response.text))
        return response.text
