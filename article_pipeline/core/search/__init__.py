"""Reference search strategies and their selection from settings."""

from article_pipeline.shared.config import SearchProvider, Settings
from article_pipeline.shared.exceptions import ConfigurationError

from .base import ReferenceSearchProvider
from .duckduckgo import DuckDuckGoSearchProvider
from .serpapi import SerpApiSearchProvider

PROVIDERS = {
    SearchProvider.API: SerpApiSearchProvider,
    SearchProvider.FALLBACK: DuckDuckGoSearchProvider,
}


def build_search_provider(settings: Settings) -> ReferenceSearchProvider:
    """Instantiate the configured strategy.

    Raises:
        ConfigurationError: Unknown strategy or missing credentials
    """
    provider_class = PROVIDERS.get(settings.SEARCH_PROVIDER)
    if provider_class is None:
        raise ConfigurationError(f"Unsupported search provider: {settings.SEARCH_PROVIDER}")
    return provider_class(settings)


__all__ = [
    "DuckDuckGoSearchProvider",
    "ReferenceSearchProvider",
    "SerpApiSearchProvider",
    "build_search_provider",
]
