"""Maps pipeline results to article store records."""

from typing import Optional

import structlog

from article_pipeline.core.models import ExtractionResult, RewrittenArticle
from article_pipeline.core.publisher.schemas import (
    TITLE_MAX_LENGTH,
    ArticleCreateRequest,
    ArticleVersion,
)
from article_pipeline.core.publisher.store_client import ArticleStoreClient

logger = structlog.get_logger(__name__)


def _clip_title(title: str) -> str:
    if len(title) <= TITLE_MAX_LENGTH:
        return title
    return title[:TITLE_MAX_LENGTH - 3].rstrip() + "..."


class Publisher:
    """Publishes originals during acquisition and rewrites during rewrite jobs.

    Idempotency comes from the store's unique constraints; a repeated publish
    surfaces as DuplicateArticleError.
    """

    def __init__(self, store: ArticleStoreClient):
        self.store = store

    def publish_original(self, result: ExtractionResult, source_url: Optional[str] = None) -> str:
        """Store an acquired article and return its store id."""
        request = ArticleCreateRequest(
            title=_clip_title(result.title),
            content=result.body_text,
            source_url=source_url or result.url,
            version=ArticleVersion.ORIGINAL,
            published_at=result.published_at,
        )
        article = self.store.create_article(request)
        return str(article.id)

    def publish_rewrite(self, rewritten: RewrittenArticle, source_id: Optional[str] = None) -> str:
        """Store a rewrite linked to its source; the store marks the source processed."""
        source_id = source_id or rewritten.source_id
        request = ArticleCreateRequest(
            title=_clip_title(rewritten.title),
            content=rewritten.body_text,
            version=ArticleVersion.REWRITTEN,
            parent_article_id=int(source_id) if str(source_id).isdigit() else source_id,
            references=list(rewritten.reference_urls),
        )
        article = self.store.create_article(request)
        logger.info(
            "Rewrite published",
            source_id=source_id,
            article_id=article.id,
            references=len(rewritten.reference_urls),
        )
        return str(article.id)
