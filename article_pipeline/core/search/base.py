"""Common behaviour for reference search strategies."""

import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from urllib.parse import urlparse

import structlog

from article_pipeline.shared.config import Settings

logger = structlog.get_logger(__name__)

# Hosts that never serve a readable article
NON_ARTICLE_DOMAINS = (
    "google.com",
    "youtube.com",
    "youtu.be",
    "vimeo.com",
    "duckduckgo.com",
    "bing.com",
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "pinterest.com",
    "reddit.com",
    "tiktok.com",
)

ARTICLE_PATH_RE = re.compile(r"/(?:blogs?|articles?|posts?)/", re.IGNORECASE)
DATE_PATH_RE = re.compile(r"/\d{4}/\d{2}/")


def host_matches(host: str, domain: str) -> bool:
    """True when `host` is `domain` or one of its subdomains."""
    host = host.lower().split(":")[0]
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


class ReferenceSearchProvider(ABC):
    """Finds candidate reference article URLs for a query.

    Implementations never raise on transport or parse failures; they log and
    return an empty list so a rewrite can be skipped cleanly.
    """

    name = "base"
    accept_date_paths = False

    def __init__(self, settings: Settings):
        self.settings = settings
        self.excluded_domains = (settings.excluded_source_domain,) + NON_ARTICLE_DOMAINS

    @abstractmethod
    def search(self, query: str, max_results: int = 2) -> List[str]:
        """Return up to `max_results` ordered candidate URLs."""

    def is_candidate(self, url: Optional[str]) -> bool:
        if not url or not url.startswith(("http://", "https://")):
            return False

        parsed = urlparse(url)
        if any(host_matches(parsed.netloc, domain) for domain in self.excluded_domains):
            return False

        if ARTICLE_PATH_RE.search(parsed.path):
            return True
        return self.accept_date_paths and bool(DATE_PATH_RE.search(parsed.path))

    def select_candidates(self, urls: Iterable[Optional[str]], max_results: int) -> List[str]:
        """Filter and de-duplicate while keeping result order."""
        selected: List[str] = []
        for url in urls:
            if len(selected) >= max_results:
                break
            if self.is_candidate(url) and url not in selected:
                selected.append(url)
        return selected
