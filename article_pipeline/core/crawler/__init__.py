"""Crawler package for listing discovery and article extraction.

Example:
    ```python
    from article_pipeline.shared.config import get_settings
    from article_pipeline.core.crawler import ContentExtractor, PageLocator

    settings = get_settings()
    urls = PageLocator(settings).locate_batch(settings.LISTING_ROOT_URL, 5)
    results = [ContentExtractor(settings).extract(url) for url in urls]
    ```
"""

from .extractor import ContentExtractor
from .fetcher import HtmlFetcher
from .locator import PageLocator

__all__ = [
    "ContentExtractor",
    "HtmlFetcher",
    "PageLocator",
]
