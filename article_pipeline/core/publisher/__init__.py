"""Article store client and publishing."""

from .publisher import Publisher
from .store_client import ArticleStoreClient

__all__ = [
    "ArticleStoreClient",
    "Publisher",
]
