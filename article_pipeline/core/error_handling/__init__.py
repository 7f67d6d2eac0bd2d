"""Error handling components for the article pipeline."""

from .retry_handler import RetryConfig, RetryHandler

__all__ = [
    "RetryConfig",
    "RetryHandler",
]
