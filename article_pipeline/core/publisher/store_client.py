"""HTTP client for the article store API."""

from typing import Any, Dict, Optional

import requests
import structlog
from pydantic import ValidationError

from article_pipeline.core.publisher.schemas import ArticleCreateRequest, StoredArticle
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import (
    ArticleStoreError,
    DuplicateArticleError,
    PublishValidationError,
)

logger = structlog.get_logger(__name__)

# Validation messages the store uses for unique constraint violations
DUPLICATE_MARKERS = ("already been taken", "already exists", "duplicate")


def _is_duplicate(errors: Dict[str, Any]) -> bool:
    for messages in errors.values():
        if isinstance(messages, str):
            messages = [messages]
        for message in messages or []:
            if any(marker in str(message).lower() for marker in DUPLICATE_MARKERS):
                return True
    return False


class ArticleStoreClient:
    """Reads the next unprocessed article and creates new article records."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = settings.ARTICLE_STORE_BASE_URL.rstrip("/")
        self.timeout = settings.ARTICLE_STORE_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def get_latest_unprocessed(self) -> Optional[StoredArticle]:
        """Most recent article that has no rewrite yet, or None when there is none.

        Raises:
            ArticleStoreError: Transport failure or unexpected response
        """
        response = self._request("GET", "/api/articles/latest")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ArticleStoreError(
                f"Unexpected status {response.status_code} from article store",
                status_code=response.status_code
            )
        return self._parse_article(response)

    def create_article(self, request: ArticleCreateRequest) -> StoredArticle:
        """Create an article record.

        Raises:
            DuplicateArticleError: A unique constraint rejected the payload
            PublishValidationError: Any other validation failure
            ArticleStoreError: Transport failure or unexpected response
        """
        response = self._request("POST", "/api/articles", json=request.to_payload())

        if response.status_code == 422:
            body = self._json(response)
            errors = body.get("errors") or {}
            message = body.get("message") or "Validation failed"
            if _is_duplicate(errors):
                raise DuplicateArticleError(message, errors=errors)
            raise PublishValidationError(message, errors=errors)

        if response.status_code not in (200, 201):
            raise ArticleStoreError(
                f"Unexpected status {response.status_code} from article store",
                status_code=response.status_code
            )

        article = self._parse_article(response)
        logger.info(
            "Article stored",
            article_id=article.id,
            version=article.version.value,
            source_url=article.source_url,
        )
        return article

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ArticleStoreError(
                f"Article store unreachable: {e}",
                details={"url": url, "method": method}
            )

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            raise ArticleStoreError(
                "Article store returned invalid JSON",
                status_code=response.status_code
            )
        if not isinstance(body, dict):
            raise ArticleStoreError("Article store returned an unexpected body", status_code=response.status_code)
        return body

    def _parse_article(self, response: requests.Response) -> StoredArticle:
        data = self._json(response).get("data")
        try:
            return StoredArticle.model_validate(data)
        except ValidationError as e:
            raise ArticleStoreError(
                "Article store returned a malformed article",
                status_code=response.status_code,
                details={"errors": e.errors()}
            )
