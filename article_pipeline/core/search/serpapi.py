"""Reference search through the SerpAPI Google results endpoint."""

from typing import List, Optional
from uuid import uuid4

import requests
import structlog

from article_pipeline.core.search.base import ReferenceSearchProvider
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import ConfigurationError, SearchProviderError

logger = structlog.get_logger(__name__)

SERPAPI_URL = "https://serpapi.com/search"


class SerpApiSearchProvider(ReferenceSearchProvider):
    name = "serpapi"

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        super().__init__(settings)
        if not settings.SERP_API_KEY:
            raise ConfigurationError(
                "SERP_API_KEY is required when SEARCH_PROVIDER=api",
                details={"setting": "SERP_API_KEY"}
            )
        self.api_key = settings.SERP_API_KEY
        self.session = session or requests.Session()

    def search(self, query: str, max_results: int = 2) -> List[str]:
        correlation_id = str(uuid4())
        try:
            links = self._fetch_links(query)
        except SearchProviderError as e:
            logger.warning(
                "Reference search failed",
                correlation_id=correlation_id,
                provider=self.name,
                query=query,
                error=e.message,
            )
            return []

        results = self.select_candidates(links, max_results)
        logger.info(
            "Reference search completed",
            correlation_id=correlation_id,
            provider=self.name,
            query=query,
            organic_results=len(links),
            selected=len(results),
        )
        return results

    def _fetch_links(self, query: str) -> List[str]:
        params = {
            "engine": "google",
            "q": query,
            "num": 10,
            "api_key": self.api_key,
        }
        try:
            response = self.session.get(SERPAPI_URL, params=params, timeout=self.settings.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise SearchProviderError(self.name, str(e))

        if response.status_code != 200:
            raise SearchProviderError(
                self.name,
                f"unexpected status {response.status_code}",
                details={"status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError(self.name, f"invalid JSON: {e}")

        if not isinstance(data, dict):
            raise SearchProviderError(self.name, f"unexpected response body: {type(data).__name__}")
        results = data.get("organic_results") or []
        if not isinstance(results, list):
            raise SearchProviderError(self.name, "organic_results is not a list")
        return [item["link"] for item in results if isinstance(item, dict) and isinstance(item.get("link"), str)]
